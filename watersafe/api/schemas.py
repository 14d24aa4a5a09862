"""Pydantic schemas for HTTP responses. Wire names are camelCase."""
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from watersafe.models.enums import ReportPriority, ReportStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, alias_generator=to_camel)


# Report schemas
class ReportResponse(CamelModel):
    id: str
    report_code: str
    location: str
    coordinates: Optional[str]
    description: str
    status: ReportStatus
    priority: ReportPriority
    submitted_by_name: Optional[str]
    submitted_by_email: Optional[str]
    anonymous: bool
    contact_for_updates: bool
    official_response: Optional[str]
    action_taken: Optional[str]
    submitted_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime]

    @field_serializer("submitted_at", "updated_at", "resolved_at")
    def as_utc(self, value: Optional[datetime]) -> Optional[datetime]:
        # Stored naive, always UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ReportStatsResponse(CamelModel):
    """Aggregate counts for the public accountability dashboard."""
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    avg_resolution_hours: Optional[float]


class MapPointResponse(CamelModel):
    id: str
    report_code: str
    latitude: float
    longitude: float
    status: ReportStatus
    priority: ReportPriority
    location: str


# Error responses
class FieldErrorItem(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Response when a request body or query is rejected."""
    error: str = "Validation failed"
    fields: List[FieldErrorItem] = []


class ErrorResponse(BaseModel):
    error: str


class RefusalResponse(BaseModel):
    """Response when a status transition is refused. Serialized as {"error", "from", "to"}."""
    model_config = ConfigDict(populate_by_name=True)

    error: str
    from_status: Optional[str] = Field(None, alias="from")
    to_status: Optional[str] = Field(None, alias="to")


class HealthResponse(BaseModel):
    ok: bool
    service: str
    timestamp: datetime
