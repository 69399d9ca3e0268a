"""
FastAPI application entry point.

Implements the API layer of the Infrastructure following Clean Architecture.
This module sets up the FastAPI app, registers routes, middleware, and exception handlers.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.domain.exceptions import ServiceCatalogError
from src.infrastructure.api.middleware.error_handler import (
    PROBLEM_TYPE_BASE,
    ErrorHandlerMiddleware,
    catalog_error_to_problem,
    get_correlation_id,
    http_exception_to_problem,
    problem_response,
)
from src.infrastructure.api.middleware.logging_middleware import LoggingMiddleware
from src.infrastructure.api.middleware.metrics_middleware import MetricsMiddleware
from src.infrastructure.api.routes import health, service_catalog
from src.infrastructure.api.schemas.error_schema import ProblemDetails
from src.infrastructure.config import get_settings
from src.infrastructure.module import ServiceCatalogModule
from src.infrastructure.observability import (
    configure_logging,
    instrument_fastapi_app,
    setup_tracing,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Startup:
    - Configure observability (logging, tracing)
    - Build and initialize the service catalog module (storage, versioning)
    - Instrument FastAPI with OpenTelemetry

    Shutdown:
    - Close Kubernetes and GitHub HTTP clients

    A module already placed on app.state (tests) is used as is.
    """
    configure_logging()
    setup_tracing()

    module = getattr(app.state, "service_catalog", None)
    owns_module = module is None
    if owns_module:
        module = ServiceCatalogModule.from_settings(get_settings())
        await module.initialize()
        app.state.service_catalog = module

    instrument_fastapi_app(app)

    yield

    if owns_module:
        await module.aclose()


def _validation_field(exc: RequestValidationError) -> str | None:
    """Dotted path of the first invalid request field (without its location)."""
    errors = exc.errors()
    if not errors:
        return None
    location = [str(part) for part in errors[0].get("loc", ())]
    if location and location[0] in ("body", "query", "path", "header"):
        location = location[1:]
    return ".".join(location) or None


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Dash-Ops Service Catalog API",
        description=(
            "Versioned service catalog for the Dash-Ops dashboard: service "
            "definitions, deployment ownership and tier-aware Kubernetes health."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    wildcard = settings.api.cors_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=not wildcard,  # Cannot use credentials with wildcard origins
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)  # Outermost: assigns correlation IDs

    app.include_router(health.router, prefix="/api")
    app.include_router(
        service_catalog.router,
        prefix="/api/service-catalog",
        tags=["Service Catalog"],
    )

    # Register exception handlers for proper RFC 7807 format
    @app.exception_handler(ServiceCatalogError)
    async def catalog_exception_handler(request: Request, exc: ServiceCatalogError):
        """Convert catalog errors to RFC 7807 Problem Details."""
        problem = catalog_error_to_problem(exc, request)
        if problem.status >= 500:
            logger.error(f"Catalog request failed: {exc}", exc_info=exc)
        return problem_response(problem)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Convert HTTPException to RFC 7807 Problem Details."""
        return problem_response(
            http_exception_to_problem(exc, request),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Convert request schema errors to 400 Problem Details."""
        errors = exc.errors()
        message = errors[0].get("msg", "invalid request") if errors else "invalid request"
        field = _validation_field(exc)

        problem = ProblemDetails(
            type=f"{PROBLEM_TYPE_BASE}/validation",
            title="Bad Request",
            status=status.HTTP_400_BAD_REQUEST,
            detail=f"{field}: {message}" if field else message,
            instance=request.url.path,
            correlation_id=get_correlation_id(request),
            field=field,
        )
        return problem_response(problem)

    @app.get("/", status_code=status.HTTP_200_OK)
    async def root():
        """Root endpoint - API information."""
        return {
            "name": "Dash-Ops Service Catalog API",
            "version": "1.0.0",
            "status": "operational",
            "docs": "/docs",
        }

    return app


# Create app instance
app = create_app()


def serve() -> None:
    """Run the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(app, host=settings.api.host, port=settings.api.port, log_config=None)


if __name__ == "__main__":
    serve()
