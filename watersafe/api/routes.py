"""API routes for citizen report intake, moderation and the public view."""
from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from watersafe.api.schemas import (
    ErrorResponse,
    HealthResponse,
    MapPointResponse,
    RefusalResponse,
    ReportResponse,
    ReportStatsResponse,
    ValidationErrorResponse
)
from watersafe.database import get_db
from watersafe.services.lifecycle import ReportLifecycle
from watersafe.services.queries import ALL, ReportQueryService
from watersafe.services.validator import validate_submission, validate_update

router = APIRouter()

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Report not found"}}
INVALID = {400: {"model": ValidationErrorResponse, "description": "Rejected input, one entry per field"}}


def get_lifecycle(request: Request, db: Session = Depends(get_db)) -> ReportLifecycle:
    """Lifecycle service bound to this request's session and the app's policy."""
    return ReportLifecycle(
        db,
        code_generator=request.app.state.code_generator,
        forward_only=request.app.state.settings.forward_only_transitions
    )


def get_queries(db: Session = Depends(get_db)) -> ReportQueryService:
    return ReportQueryService(db)


@router.get("/health", response_model=HealthResponse)
def health_check():
    """Liveness check."""
    return {"ok": True, "service": "watersafe-hub", "timestamp": datetime.now(timezone.utc)}


# Public view
@router.get("/reports", response_model=List[ReportResponse], responses=INVALID)
def list_reports(
    search: Optional[str] = Query(None, description="Substring of location, description or report code"),
    status_filter: str = Query(ALL, alias="status"),
    priority: str = Query(ALL),
    queries: ReportQueryService = Depends(get_queries)
):
    """List reports newest first, optionally filtered."""
    return queries.search(search=search, status=status_filter, priority=priority)


@router.get("/reports/stats", response_model=ReportStatsResponse)
def report_stats(queries: ReportQueryService = Depends(get_queries)):
    """Totals per status and priority, always computed from current data."""
    return queries.stats()


@router.get("/reports/map-points", response_model=List[MapPointResponse])
def report_map_points(queries: ReportQueryService = Depends(get_queries)):
    """Reports with parseable coordinates, as lat/lng points for the map view."""
    return queries.map_points()


@router.get("/reports/{report_id}", response_model=ReportResponse, responses=NOT_FOUND)
def get_report(report_id: str, lifecycle: ReportLifecycle = Depends(get_lifecycle)):
    """Get a specific report."""
    return lifecycle.get(report_id)


# Intake
@router.post("/reports", response_model=ReportResponse, status_code=status.HTTP_201_CREATED, responses=INVALID)
def create_report(payload: Any = Body(...), lifecycle: ReportLifecycle = Depends(get_lifecycle)):
    """
    Submit a citizen report. Always created in Pending status.
    Anonymous submissions have name, email and contact preference stripped.
    """
    new_report = validate_submission(payload)
    return lifecycle.create(new_report)


# Moderation
@router.patch("/reports/{report_id}", response_model=ReportResponse, responses={
    **NOT_FOUND,
    **INVALID,
    409: {"model": RefusalResponse, "description": "Refusal - transition not allowed by policy"}
})
def update_report(
    report_id: str,
    payload: Any = Body(None),
    lifecycle: ReportLifecycle = Depends(get_lifecycle)
):
    """
    Update status, priority, official response or action taken.
    Only the fields present in the body change.
    """
    changes = validate_update(payload if payload is not None else {})
    return lifecycle.update(report_id, changes)


@router.delete("/reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
def delete_report(report_id: str, lifecycle: ReportLifecycle = Depends(get_lifecycle)):
    """Remove a report permanently."""
    lifecycle.delete(report_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
