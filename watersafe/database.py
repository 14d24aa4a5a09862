"""Database configuration and session management."""
import logging
from typing import Tuple

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_database(database_url: str, echo: bool = False) -> Tuple[Engine, sessionmaker]:
    """Build an engine and session factory for the given URL."""
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            # One shared connection, otherwise every session sees an empty database
            engine = create_engine(
                database_url,
                connect_args=connect_args,
                poolclass=StaticPool,
                echo=echo
            )
        else:
            engine = create_engine(database_url, connect_args=connect_args, echo=echo)
        _register_unicode_lower(engine)
    else:
        # PostgreSQL config (production)
        engine = create_engine(
            database_url,
            pool_pre_ping=True,  # Verify connections before using
            pool_size=5,
            max_overflow=10,
            echo=echo
        )

    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
    return engine, session_factory


def _register_unicode_lower(engine: Engine) -> None:
    """Replace SQLite's ASCII-only lower() with Python's str.lower on every connection."""
    @event.listens_for(engine, "connect")
    def _set_lower(dbapi_connection, connection_record):
        dbapi_connection.create_function(
            "lower", 1, lambda value: value.lower() if isinstance(value, str) else value
        )


def init_db(engine: Engine) -> None:
    """Create all tables registered on Base."""
    # Import models so they are registered with Base
    from watersafe.models import audit, domain  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    """Dependency for FastAPI endpoints to get database session."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
