"""
Read-only report queries for the public accountability view and operators.

Nothing here writes. Aggregates are recomputed from the table on every call.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from watersafe.models.domain import Report
from watersafe.models.enums import ReportPriority, ReportStatus
from watersafe.services.coordinates import parse_coordinates
from watersafe.services.errors import FieldError, ValidationError

ALL = "all"


@dataclass
class ReportStats:
    """Counts derived from a fresh scan of the reports table."""
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    avg_resolution_hours: Optional[float] = None


@dataclass
class MapPoint:
    """A report that can be placed on the map."""
    id: str
    report_code: str
    latitude: float
    longitude: float
    status: ReportStatus
    priority: ReportPriority
    location: str = ""


def _parse_filter(value: Optional[str], enum_cls, name: str, errors: List[FieldError]):
    if value is None or value.strip().lower() in ("", ALL):
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        allowed = ", ".join(member.value.lower() for member in enum_cls)
        errors.append(FieldError(name, f"must be 'all' or one of {allowed}"))
        return None


class ReportQueryService:
    """Filters, sorts and aggregates committed reports."""

    def __init__(self, db: Session):
        self.db = db

    def search(
        self,
        search: Optional[str] = None,
        status: Optional[str] = ALL,
        priority: Optional[str] = ALL
    ) -> List[Report]:
        """
        Reports matching every given filter, newest first.

        - search: case-insensitive substring of location, description or report code
        - status / priority: exact value, case-insensitive; "all" disables the filter

        Raises:
            ValidationError: unknown status or priority value
        """
        errors: List[FieldError] = []
        status_value = _parse_filter(status, ReportStatus, "status", errors)
        priority_value = _parse_filter(priority, ReportPriority, "priority", errors)
        if errors:
            raise ValidationError(errors)

        query = self.db.query(Report)

        term = (search or "").strip().lower()
        if term:
            query = query.filter(or_(
                func.lower(Report.location).contains(term, autoescape=True),
                func.lower(Report.description).contains(term, autoescape=True),
                func.lower(Report.report_code).contains(term, autoescape=True)
            ))
        if status_value is not None:
            query = query.filter(Report.status == status_value)
        if priority_value is not None:
            query = query.filter(Report.priority == priority_value)

        return query.order_by(Report.submitted_at.desc(), Report.report_code.desc()).all()

    def stats(self) -> ReportStats:
        """Totals per status and priority, plus average time to resolution."""
        by_status = {status.value: 0 for status in ReportStatus}
        for status, count in self.db.query(Report.status, func.count(Report.id)).group_by(Report.status):
            by_status[status.value] = count

        by_priority = {priority.value: 0 for priority in ReportPriority}
        for priority, count in self.db.query(Report.priority, func.count(Report.id)).group_by(Report.priority):
            by_priority[priority.value] = count

        resolved = self.db.query(Report.submitted_at, Report.resolved_at).filter(
            Report.resolved_at.isnot(None)
        ).all()
        avg_hours = None
        if resolved:
            total_seconds = sum((r.resolved_at - r.submitted_at).total_seconds() for r in resolved)
            avg_hours = round(total_seconds / len(resolved) / 3600, 2)

        return ReportStats(
            total=sum(by_status.values()),
            by_status=by_status,
            by_priority=by_priority,
            avg_resolution_hours=avg_hours
        )

    def map_points(self) -> List[MapPoint]:
        """Reports with usable coordinates, newest first."""
        points = []
        rows = self.db.query(Report).filter(Report.coordinates.isnot(None)).order_by(
            Report.submitted_at.desc(), Report.report_code.desc()
        )
        for report in rows:
            coords = parse_coordinates(report.coordinates)
            if coords is None:
                continue
            points.append(MapPoint(
                id=report.id,
                report_code=report.report_code,
                latitude=coords.latitude,
                longitude=coords.longitude,
                status=report.status,
                priority=report.priority,
                location=report.location
            ))
        return points
