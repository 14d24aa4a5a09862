"""Enums for WaterSafe reports - these define the valid values for status and priority."""
from enum import Enum


class ReportStatus(str, Enum):
    """The three triage states a Report can be in. No other states are allowed."""
    PENDING = "PENDING"
    INVESTIGATING = "INVESTIGATING"
    RESOLVED = "RESOLVED"


class ReportPriority(str, Enum):
    """Urgency assigned by the submitter, adjustable by officials."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"
