"""Catalog admin API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from catalog_admin.api.categories import router as categories_router
from catalog_admin.api.health import router as health_router
from catalog_admin.api.imports import router as imports_router
from catalog_admin.api.middleware import setup_middleware
from catalog_admin.api.products import router as products_router
from catalog_admin.application.asset_ingestion import AssetIngestionService
from catalog_admin.application.csv_import import import_csv_file
from catalog_admin.domain.exceptions import DomainError
from catalog_admin.infrastructure.asset_host import AssetHostClient, AssetHostConfig
from catalog_admin.infrastructure.config import Settings, get_settings
from catalog_admin.infrastructure.database import Database
from catalog_admin.infrastructure.logging_config import configure_logging

logger = structlog.get_logger()


def _error_body(
    request: Request,
    error_code: str,
    message: str,
    details: list | dict | None = None,
) -> dict:
    return {
        "error_code": error_code,
        "message": message,
        "details": details if details is not None else [],
        "request_id": getattr(request.state, "request_id", None),
    }


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to run with; read from the environment when omitted.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Handle application startup and shutdown events.

        Args:
            app: The FastAPI application instance.

        Yields:
            None after startup, cleanup happens after yield.
        """
        # Startup
        configure_logging(settings.log_level)
        logger.info(
            "Starting catalog admin API",
            version=settings.api_version,
            debug=settings.debug,
        )

        database = Database(settings.database_url, echo=settings.debug)
        if settings.auto_create_tables:
            await database.create_tables()

        asset_service = AssetIngestionService(
            settings,
            AssetHostClient(AssetHostConfig.from_settings(settings)),
        )

        app.state.database = database
        app.state.asset_service = asset_service

        if settings.load_csv_on_startup:
            try:
                await import_csv_file(
                    database.session_factory,
                    asset_service,
                    settings.csv_import_path,
                )
            except (OSError, SQLAlchemyError) as e:
                logger.error(
                    "Startup CSV import failed",
                    path=settings.csv_import_path,
                    error=str(e),
                )

        yield

        # Shutdown
        logger.info("Shutting down catalog admin API")
        await asset_service.close()
        await database.dispose()

    app = FastAPI(
        title="Catalog Admin API",
        description="Product catalog administration backend",
        version=settings.api_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # CORS middleware (must be added before custom middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup custom middleware (request ID, optional API key auth, error handling)
    setup_middleware(app, api_key=settings.admin_api_key)

    # Include routers
    app.include_router(health_router, tags=["Health"])
    app.include_router(categories_router)
    app.include_router(products_router)
    app.include_router(imports_router)

    _register_exception_handlers(app)
    return app


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        """Map domain errors to their HTTP status."""
        if exc.status_code >= 500:
            logger.error(
                "Domain error",
                path=request.url.path,
                error_code=exc.error_code,
                error=exc.message,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.error_code, exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report malformed requests as 400 with one entry per problem."""
        details = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body")
                or None,
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=_error_body(request, "VALIDATION_ERROR", "Invalid request", details),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with consistent format."""
        # Extract error details from exception
        detail = exc.detail
        if isinstance(detail, dict):
            error_code = detail.get("error_code", "ERROR")
            message = detail.get("message", str(detail))
            details = detail.get("details", [])
        else:
            error_code = "ERROR"
            message = str(detail)
            details = []

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, error_code, message, details),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions with consistent format."""
        logger.exception(
            "Unhandled exception in handler",
            path=request.url.path,
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(request, "INTERNAL_ERROR", "An internal error occurred"),
        )


app = create_app()
