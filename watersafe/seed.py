"""
Demo data for local development.

Run with `python -m watersafe.seed` or set SEED_DEMO_DATA=true. Reports are
created through the lifecycle service, so they get real codes and audit events.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from watersafe.models.domain import Report
from watersafe.models.enums import ReportStatus
from watersafe.services.lifecycle import ReportLifecycle
from watersafe.services.report_codes import ReportCodeGenerator
from watersafe.services.validator import ReportChanges, validate_submission

logger = logging.getLogger(__name__)

DEMO_REPORTS = [
    (
        {
            "location": "Downtown Lake",
            "coordinates": "25.2°N, 89.3°E",
            "issueType": "discoloration",
            "priority": "medium",
            "description": "Unusual water discoloration observed",
            "anonymous": True,
        },
        ReportChanges.of(
            status=ReportStatus.RESOLVED,
            official_response="Water testing conducted. Temporary algae bloom, resolved naturally.",
            action_taken="Increased monitoring frequency for 30 days",
        ),
    ),
    (
        {
            "name": "John Doe",
            "email": "john@example.com",
            "location": "Industrial District River",
            "coordinates": "25.4°N, 89.1°E",
            "issueType": "pollution",
            "priority": "critical",
            "description": "Strong chemical odor and oil sheen on water surface",
        },
        ReportChanges.of(
            status=ReportStatus.INVESTIGATING,
            official_response="Investigation ongoing. Industrial facility inspections scheduled.",
            action_taken="Water access restricted, source investigation in progress",
        ),
    ),
    (
        {
            "name": "Jane Smith",
            "email": "jane@example.com",
            "location": "Residential Well Area",
            "coordinates": "25.1°N, 89.5°E",
            "issueType": "taste",
            "priority": "high",
            "description": "Metallic taste in drinking water",
        },
        ReportChanges.of(
            official_response="Report received and logged for review.",
            action_taken="Pending initial assessment",
        ),
    ),
]


def seed_demo_reports(db: Session, code_generator: Optional[ReportCodeGenerator] = None) -> List[Report]:
    """Insert the demo reports if the table is empty. Returns what was created."""
    if db.query(Report.id).first() is not None:
        logger.info("Reports table not empty, skipping demo seed")
        return []

    lifecycle = ReportLifecycle(db, code_generator=code_generator)
    created = []
    for payload, changes in DEMO_REPORTS:
        report = lifecycle.create(validate_submission(payload))
        created.append(lifecycle.update(report.id, changes))

    logger.info("Seeded %d demo reports", len(created))
    return created


def main() -> None:
    from watersafe.config import get_settings
    from watersafe.database import create_database, init_db
    from watersafe.logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level)
    engine, session_factory = create_database(settings.database_url, echo=settings.db_echo)
    init_db(engine)
    with session_factory() as db:
        seed_demo_reports(
            db,
            code_generator=ReportCodeGenerator(
                prefix=settings.report_code_prefix,
                max_attempts=settings.report_code_max_attempts
            )
        )


if __name__ == "__main__":
    main()
