"""
HTTP API for fintrack

A thin FastAPI layer over the orchestrator flows. Handlers only translate
between HTTP and the flows; no business logic lives here.

Every error response has the shape {"message": ...}.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fintrack import __version__
from fintrack.api.routes import auth_router, router
from fintrack.audit import AuditLogger, configure_logging
from fintrack.config import Settings, get_settings
from fintrack.orchestrator import create_app_components
from fintrack.services.storage import LedgerStorageInterface

logger = structlog.get_logger("fintrack.api")


def _format_validation_errors(exc: RequestValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return messages


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[LedgerStorageInterface] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use. Defaults to get_settings().
        storage: Ledger storage to use. Defaults to the configured backend.
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)

    audit_logger = AuditLogger(keep_recent=100 if app_settings.debug_mode else 0)
    access_flow, ledger_flow, dashboard_flow = create_app_components(
        settings, storage, audit_logger=audit_logger
    )

    app = FastAPI(
        title="fintrack API",
        version=__version__,
        debug=app_settings.debug_mode,
    )
    app.state.access_flow = access_flow
    app.state.ledger_flow = ledger_flow
    app.state.dashboard_flow = dashboard_flow
    app.state.audit_logger = audit_logger

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(
            "request_rejected",
            path=request.url.path,
            error_count=len(exc.errors()),
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "message": "Invalid request data",
                "errors": _format_validation_errors(exc),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        await audit_logger.log_error(
            error_type=type(exc).__name__,
            error_message=str(exc),
            details={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )

    app.include_router(auth_router, prefix="/api", tags=["authentication"])
    app.include_router(router, prefix="/api", tags=["ledger"])

    @app.get("/")
    def home():
        return {"message": "Welcome to fintrack API"}

    logger.info(
        "app_created",
        environment=app_settings.app_environment,
        storage_backend=app_settings.storage_backend.value,
    )
    return app
