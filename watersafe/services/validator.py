"""
Boundary validation for report submissions and moderation updates.

Raw JSON bodies are checked once here against Pydantic request schemas and
turned into typed construction records (NewReport, ReportChanges). Nothing
deeper in the system sees an untyped payload.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from watersafe.models.enums import ReportPriority, ReportStatus
from watersafe.services.coordinates import normalize_coordinates
from watersafe.services.errors import FieldError, ValidationError

logger = logging.getLogger(__name__)

SUBMISSION_PRIORITIES = ("low", "medium", "high", "critical")


# Request schemas
class ReportSubmission(BaseModel):
    """What the citizen report form sends. Field order matters: anonymous is read by the email check."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    anonymous: bool = False
    contact_for_updates: bool = Field(True, alias="contactForUpdates")
    name: Optional[str] = None
    email: Optional[str] = None
    location: str
    coordinates: Optional[str] = None
    issue_type: str = Field(..., alias="issueType")
    priority: ReportPriority
    description: str

    @field_validator("location", "issue_type", "description")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def priority_from_form(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip().lower() in SUBMISSION_PRIORITIES:
            return value.strip().upper()
        raise ValueError(f"must be one of {', '.join(SUBMISSION_PRIORITIES)}")

    @field_validator("name")
    @classmethod
    def blank_name_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @field_validator("email")
    @classmethod
    def email_when_identified(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if not value:
            return None
        # Anonymous submissions drop the address, so its syntax is irrelevant
        if info.data.get("anonymous"):
            return None
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(f"must be a valid email address ({exc})")
        return value


class ReportUpdateRequest(BaseModel):
    """Moderation PATCH body. Every field optional; enum values are upper case."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: Optional[ReportStatus] = None
    priority: Optional[ReportPriority] = None
    official_response: Optional[str] = Field(None, alias="officialResponse")
    action_taken: Optional[str] = Field(None, alias="actionTaken")

    @field_validator("status", "priority", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value


# Construction records
@dataclass(frozen=True)
class NewReport:
    """A fully validated, normalized submission ready for the lifecycle service."""
    location: str
    issue_type: str
    body: str
    priority: ReportPriority
    coordinates: Optional[str] = None
    coordinates_rejected: bool = False
    submitted_by_name: Optional[str] = None
    submitted_by_email: Optional[str] = None
    anonymous: bool = False
    contact_for_updates: bool = True

    @property
    def description(self) -> str:
        """Stored description, tagged with the issue type."""
        return f"[{self.issue_type}] {self.body}"


@dataclass(frozen=True)
class ReportChanges:
    """Partial update. Only names listed in `provided` are applied."""
    status: Optional[ReportStatus] = None
    priority: Optional[ReportPriority] = None
    official_response: Optional[str] = None
    action_taken: Optional[str] = None
    provided: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, **values: Any) -> "ReportChanges":
        return cls(provided=frozenset(values), **values)

    def is_empty(self) -> bool:
        return not self.provided


def _field_errors(exc: PydanticValidationError) -> List[FieldError]:
    errors = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        name = ".".join(str(part) for part in loc) or "body"
        message = err.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        if err.get("type") in ("model_type", "model_attributes_type"):
            message = "request body must be a JSON object"
        errors.append(FieldError(name, message))
    return errors


def validate_submission(payload: Any) -> NewReport:
    """
    Validate a citizen submission and build its construction record.

    Raises:
        ValidationError: with every field problem found
    """
    try:
        data = ReportSubmission.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_field_errors(exc))

    coordinates = normalize_coordinates(data.coordinates)
    rejected = bool(data.coordinates) and coordinates is None
    if rejected:
        logger.warning("Discarding unparsable coordinates %r for location %r", data.coordinates, data.location)

    if data.anonymous:
        # Identity is suppressed by policy, whatever the form carried
        name, email, contact = None, None, False
    else:
        name, email, contact = data.name, data.email, data.contact_for_updates

    return NewReport(
        location=data.location,
        issue_type=data.issue_type,
        body=data.description,
        priority=data.priority,
        coordinates=coordinates,
        coordinates_rejected=rejected,
        submitted_by_name=name,
        submitted_by_email=email,
        anonymous=data.anonymous,
        contact_for_updates=contact,
    )


def validate_update(payload: Any) -> ReportChanges:
    """
    Validate a moderation update body.

    Raises:
        ValidationError: with every field problem found
    """
    try:
        data = ReportUpdateRequest.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_field_errors(exc))

    return ReportChanges(
        status=data.status,
        priority=data.priority,
        official_response=data.official_response,
        action_taken=data.action_taken,
        provided=frozenset(data.model_fields_set),
    )
