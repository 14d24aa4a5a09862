"""Errors raised by the report services and mapped to HTTP responses in main."""
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class FieldError:
    """One rejected input field."""
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class ValidationError(Exception):
    """
    Raised when client input is malformed or missing.
    Carries every field error found, never just the first one.
    """
    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))


class NotFound(Exception):
    """Raised when an operation targets a report id that does not exist."""
    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report {report_id} not found")


class TransitionRefused(Exception):
    """
    Raised when the lifecycle policy refuses a status change.
    This is NOT a malfunction - it's the transition table working correctly.
    """
    def __init__(self, message: str, from_status: Optional[str] = None, to_status: Optional[str] = None):
        self.message = message
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(self.message)


class CodeGenerationExhausted(Exception):
    """Raised when no unused report code was found within the retry budget."""
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"No unique report code after {attempts} attempts")
