"""
Internal audit logging model - NOT a user-facing domain object.

This model exists to provide immutable, append-only audit trails
for report intake, moderation and refusals. It is not exposed in the HTTP API.
"""
from sqlalchemy import JSON, Column, DateTime, Integer, String

from watersafe.database import Base
from watersafe.models.domain import utcnow


class AuditEvent(Base):
    """
    Immutable audit event for reconstructing what happened to a report.

    Invariants:
    - Once written, never edited or deleted
    - Append-only, survives deletion of the report it describes
    - Written in the same transaction as the change it records
    """
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    event_type = Column(String, nullable=False, index=True)  # e.g., "report_status_changed"
    entity_type = Column(String, nullable=False)  # e.g., "Report"
    entity_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    payload_json = Column(JSON, nullable=True)  # Minimal contextual data


class AuditEventType:
    """Enumeration of audit event types."""
    REPORT_SUBMITTED = "report_submitted"
    REPORT_UPDATED = "report_updated"
    REPORT_STATUS_CHANGED = "report_status_changed"
    REPORT_TRANSITION_REFUSED = "report_transition_refused"
    REPORT_DELETED = "report_deleted"
