"""
Report lifecycle manager - the only path that creates, mutates or removes reports.

Enforces the status transition table, resolution timestamps and the
anonymity invariants, and writes an audit event with every change.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, FrozenSet, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from watersafe.models.audit import AuditEvent, AuditEventType
from watersafe.models.domain import Report, new_report_id, utcnow
from watersafe.models.enums import ReportStatus
from watersafe.services.errors import NotFound, TransitionRefused
from watersafe.services.report_codes import ReportCodeGenerator
from watersafe.services.validator import NewReport, ReportChanges

logger = logging.getLogger(__name__)

# Default: officials may move a report between any two states
PERMISSIVE_TRANSITIONS: Dict[ReportStatus, FrozenSet[ReportStatus]] = {
    status: frozenset(ReportStatus) for status in ReportStatus
}

# Pending → Investigating → Resolved, skipping ahead allowed, never backwards
FORWARD_ONLY_TRANSITIONS: Dict[ReportStatus, FrozenSet[ReportStatus]] = {
    ReportStatus.PENDING: frozenset(ReportStatus),
    ReportStatus.INVESTIGATING: frozenset({ReportStatus.INVESTIGATING, ReportStatus.RESOLVED}),
    ReportStatus.RESOLVED: frozenset({ReportStatus.RESOLVED}),
}

_EDITABLE_FIELDS = ("priority", "official_response", "action_taken")


class ReportLifecycle:
    """Enforces report state transition invariants and business rules."""

    def __init__(
        self,
        db: Session,
        code_generator: Optional[ReportCodeGenerator] = None,
        clock: Callable[[], datetime] = utcnow,
        forward_only: bool = False
    ):
        self.db = db
        self.code_generator = code_generator or ReportCodeGenerator()
        self.clock = clock
        self.transitions = FORWARD_ONLY_TRANSITIONS if forward_only else PERMISSIVE_TRANSITIONS

    # Reads
    def get(self, report_id: str) -> Report:
        """Fetch a report by id, or raise NotFound."""
        report = self.db.query(Report).filter(Report.id == report_id).first()
        if report is None:
            raise NotFound(report_id)
        return report

    def list_reports(self) -> List[Report]:
        """All reports, newest submission first."""
        return self.db.query(Report).order_by(
            Report.submitted_at.desc(),
            Report.report_code.desc()
        ).all()

    # Mutations
    def create(self, new_report: NewReport) -> Report:
        """
        Persist a validated submission as a new Pending report.

        The report code, Pending status and submission time are written in a
        single INSERT, so no reader ever sees a half-initialized row.

        Raises:
            CodeGenerationExhausted: no free report code within the retry budget
        """
        submitted_at = self.clock()

        def claim(code: str) -> bool:
            if self._code_exists(code):
                return False
            report_id = new_report_id()
            self.db.add(Report(
                id=report_id,
                report_code=code,
                location=new_report.location,
                coordinates=new_report.coordinates,
                description=new_report.description,
                status=ReportStatus.PENDING,
                priority=new_report.priority,
                submitted_by_name=None if new_report.anonymous else new_report.submitted_by_name,
                submitted_by_email=None if new_report.anonymous else new_report.submitted_by_email,
                anonymous=new_report.anonymous,
                contact_for_updates=False if new_report.anonymous else new_report.contact_for_updates,
                submitted_at=submitted_at,
                updated_at=submitted_at
            ))
            self._audit(AuditEventType.REPORT_SUBMITTED, report_id, {
                "report_code": code,
                "priority": new_report.priority.value,
                "anonymous": new_report.anonymous,
                "coordinates_rejected": new_report.coordinates_rejected
            }, at=submitted_at)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                # Lost a race on the report_code unique constraint
                if self._code_exists(code):
                    return False
                logger.exception("Storage failure during create of report %s", report_id)
                raise
            except SQLAlchemyError:
                self.db.rollback()
                logger.exception("Storage failure during create of report %s", report_id)
                raise
            return True

        code = self.code_generator.issue(claim, submitted_at.year)
        report = self.db.query(Report).filter(Report.report_code == code).one()
        logger.info("Report %s submitted (%s, %s)", code, report.priority.value, report.location)
        return report

    def update(self, report_id: str, changes: ReportChanges) -> Report:
        """
        Apply a partial moderation update.

        Side effect: entering Resolved sets resolved_at once. Leaving Resolved
        keeps it, so the first resolution time is never lost.

        Raises:
            NotFound: unknown report id
            TransitionRefused: status change not in the transition table
        """
        report = self.get(report_id)
        if changes.is_empty():
            return report

        now = self.clock()
        dirty = False

        if "status" in changes.provided and changes.status != report.status:
            self._check_transition(report, changes.status)
            previous = report.status
            report.status = changes.status
            dirty = True
            self._audit(AuditEventType.REPORT_STATUS_CHANGED, report.id, {
                "from": previous.value,
                "to": changes.status.value
            }, at=now)
            logger.info("Report %s moved %s -> %s", report.report_code, previous.value, changes.status.value)

        if report.status == ReportStatus.RESOLVED and report.resolved_at is None:
            report.resolved_at = now
            dirty = True

        updated_fields = {}
        for name in _EDITABLE_FIELDS:
            if name not in changes.provided:
                continue
            value = getattr(changes, name)
            if getattr(report, name) != value:
                setattr(report, name, value)
                updated_fields[name] = value.value if hasattr(value, "value") else value

        if updated_fields:
            dirty = True
            self._audit(AuditEventType.REPORT_UPDATED, report.id, {"fields": updated_fields}, at=now)

        if not dirty:
            return report

        report.updated_at = now
        self._commit("update", report.id)
        self.db.refresh(report)
        return report

    def delete(self, report_id: str) -> None:
        """
        Remove a report unconditionally. Its audit trail is kept.

        Raises:
            NotFound: unknown report id
        """
        report = self.get(report_id)
        code = report.report_code
        self.db.delete(report)
        self._audit(AuditEventType.REPORT_DELETED, report_id, {"report_code": code})
        self._commit("delete", report_id)
        logger.info("Report %s deleted", code)

    # Internals
    def _check_transition(self, report: Report, target: ReportStatus) -> None:
        if target in self.transitions[report.status]:
            return

        # Refusals are recorded before being raised
        self._audit(AuditEventType.REPORT_TRANSITION_REFUSED, report.id, {
            "from": report.status.value,
            "to": target.value
        })
        self._commit("refused transition", report.id)
        raise TransitionRefused(
            f"REFUSAL: Cannot move report {report.report_code} from "
            f"{report.status.value} back to {target.value}",
            from_status=report.status.value,
            to_status=target.value
        )

    def _code_exists(self, code: str) -> bool:
        return self.db.query(Report.id).filter(Report.report_code == code).first() is not None

    def _audit(self, event_type: str, report_id: str, payload: dict, at: Optional[datetime] = None) -> None:
        self.db.add(AuditEvent(
            event_type=event_type,
            entity_type="Report",
            entity_id=report_id,
            created_at=at or self.clock(),
            payload_json=payload
        ))

    def _commit(self, operation: str, report_id: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Storage failure during %s of report %s", operation, report_id)
            raise
