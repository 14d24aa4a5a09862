"""Domain model - the citizen water-quality Report."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, String, Text

from watersafe.database import Base
from watersafe.models.enums import ReportPriority, ReportStatus


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_report_id() -> str:
    return str(uuid.uuid4())


class Report(Base):
    """
    A report progresses through states: Pending → Investigating → Resolved.

    Invariants enforced here:
    - report_code is unique (database constraint) and never reassigned
    - Status is always one of the three allowed states
    - Created with Pending status (handled in lifecycle service)
    """
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=new_report_id)
    report_code = Column(String(32), nullable=False, unique=True, index=True)

    location = Column(String, nullable=False)
    coordinates = Column(String, nullable=True)  # Canonical "lat,lng" or NULL
    description = Column(Text, nullable=False)  # "[issue-type] text"

    status = Column(SQLEnum(ReportStatus), nullable=False, default=ReportStatus.PENDING)
    priority = Column(SQLEnum(ReportPriority), nullable=False)

    # Identity - always NULL for anonymous reports
    submitted_by_name = Column(String, nullable=True)
    submitted_by_email = Column(String, nullable=True)
    anonymous = Column(Boolean, nullable=False, default=False)
    contact_for_updates = Column(Boolean, nullable=False, default=True)

    # Official side, set only through lifecycle updates
    official_response = Column(Text, nullable=True)
    action_taken = Column(Text, nullable=True)

    # Timestamps
    submitted_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    resolved_at = Column(DateTime, nullable=True)  # Set once, on first resolution

    def __repr__(self) -> str:
        return f"<Report {self.report_code} {self.status.value if self.status else None}>"
