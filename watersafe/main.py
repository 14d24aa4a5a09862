"""Main FastAPI application entry point."""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from watersafe import __version__
from watersafe.api.routes import router
from watersafe.api.schemas import RefusalResponse
from watersafe.config import Settings, get_settings
from watersafe.database import create_database, init_db
from watersafe.logging_config import setup_logging
from watersafe.services.errors import CodeGenerationExhausted, NotFound, TransitionRefused, ValidationError
from watersafe.services.report_codes import ReportCodeGenerator

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application with its own engine, session factory and policies."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    engine, session_factory = create_database(settings.database_url, echo=settings.db_echo)
    init_db(engine)

    app = FastAPI(
        title="WaterSafe Hub - Citizen Water Quality Reports",
        description="Intake, triage and public tracking of water-quality incident reports.",
        version=__version__
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.code_generator = ReportCodeGenerator(
        prefix=settings.report_code_prefix,
        max_attempts=settings.report_code_max_attempts
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix, tags=["Reports"])

    if settings.seed_demo_data:
        from watersafe.seed import seed_demo_reports

        with session_factory() as db:
            seed_demo_reports(db, code_generator=app.state.code_generator)

    logger.info("WaterSafe Hub %s ready (%s, prefix %s)", __version__, settings.app_env, settings.api_prefix)
    return app


def register_error_handlers(app: FastAPI) -> None:
    """Map service errors onto HTTP responses."""

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation failed", "fields": [e.to_dict() for e in exc.errors]}
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        fields = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            fields.append({"field": ".".join(loc) or "body", "message": err.get("msg", "invalid value")})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation failed", "fields": fields}
        )

    @app.exception_handler(NotFound)
    async def not_found(request: Request, exc: NotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Not found"})

    @app.exception_handler(TransitionRefused)
    async def transition_refused(request: Request, exc: TransitionRefused):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=RefusalResponse(
                error=exc.message, from_status=exc.from_status, to_status=exc.to_status
            ).model_dump(by_alias=True)
        )

    @app.exception_handler(CodeGenerationExhausted)
    async def code_generation_exhausted(request: Request, exc: CodeGenerationExhausted):
        logger.critical("Report intake failed on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Could not assign a report code, please retry"}
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error(request: Request, exc: SQLAlchemyError):
        # Details are already logged by the service; never echo them back
        logger.error("Storage error on %s %s: %s", request.method, request.url.path, type(exc).__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"}
        )


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("watersafe.main:create_app", factory=True, host="0.0.0.0", port=8000, log_level=_settings.log_level.lower())
