"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .core.config import Settings, settings as default_settings
from .core.database import close_db
from .core.dependencies import ServiceContainer, build_container
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    request_validation_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_structured_logging,
    setup_tracing,
)
from .routers import booking, fare, metrics, payment, pnr, quote
from .schemas.common import Problem

SERVICE_NAME = "railfare"
SERVICE_VERSION = "1.0.0"

# Error bodies documented on every RPC route
PROBLEM_RESPONSES = {
    status_code: {"model": Problem, "description": description}
    for status_code, description in (
        (400, "Invalid input or signature"),
        (404, "Unknown booking, PNR or fare tier"),
        (409, "Illegal state transition or PNR conflict"),
        (422, "Request validation failed"),
        (502, "Payment gateway failure"),
    )
}

# Configure structured logging
setup_structured_logging()

# Configure traditional logging for compatibility
logging.basicConfig(
    level=getattr(logging, default_settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Sets up tracing on startup and releases database connections on shutdown.
    """
    container: ServiceContainer = app.state.container

    logger.info("Starting railfare API")
    logger.info(f"Environment: {container.settings.environment}")
    logger.info(f"Storage backend: {container.settings.storage_backend}")

    setup_tracing(SERVICE_NAME, container.settings.otlp_endpoint)
    if container.engine is not None:
        instrument_sqlalchemy(container.engine)
    logger.info("Observability setup completed")

    yield

    logger.info("Shutting down railfare API")
    if container.engine is not None:
        close_db(container.engine)
        logger.info("Database connections closed")

    logger.info("Application shutdown complete")


def create_app(settings: Settings | None = None, container: ServiceContainer | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings; the global settings when omitted
        container: Prebuilt services; built from ``settings`` when omitted

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    if container is None:
        container = build_container(settings or default_settings)
    settings = container.settings

    app = FastAPI(
        title="Railfare API",
        description="RPC-over-HTTP API for train fares, route quotes, bookings and payment callbacks",
        version=SERVICE_VERSION,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.container = container

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Setup custom middleware
    setup_middleware(app, settings, enable_logging=True)

    # Instrument FastAPI with OpenTelemetry
    instrument_fastapi(app)

    # Register exception handlers
    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        response_model=dict,
    )
    async def health_check():
        """Liveness: the process is up and serving."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": settings.environment,
        }

    @app.get(
        "/ready",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Readiness Check",
        response_model=dict,
    )
    def readiness_check():
        """
        Readiness: fares are loaded and the booking store answers.

        Returns:
            dict: Readiness status with per-dependency checks
        """
        fare_classes = sorted(container.fare_table.snapshot())
        container.booking_store.pnr_exists("0000000000")
        return {
            "status": "ready",
            "service": SERVICE_NAME,
            "checks": {
                "booking_store": "ok",
                "fare_table": "ok" if fare_classes else "empty",
            },
            "fare_classes": fare_classes,
        }

    @app.get(
        "/info",
        status_code=status.HTTP_200_OK,
        tags=["Info"],
        summary="Service Information",
        response_model=dict,
    )
    async def service_info():
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Train pricing and booking-consistency service",
            "environment": settings.environment,
            "storage_backend": settings.storage_backend,
            "currency": settings.currency,
            "quote_cache": container.cache.stats(),
            "endpoints": {
                "health": "/health",
                "readiness": "/ready",
                "info": "/info",
                "metrics": "/metrics",
                "docs": "/docs" if settings.debug else None,
            },
        }

    # Register API routers
    app.include_router(fare.router, responses=PROBLEM_RESPONSES)
    app.include_router(quote.router, responses=PROBLEM_RESPONSES)
    app.include_router(booking.router, responses=PROBLEM_RESPONSES)
    app.include_router(payment.router, responses=PROBLEM_RESPONSES)
    app.include_router(pnr.router, responses=PROBLEM_RESPONSES)
    app.include_router(metrics.router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "railfare.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
        log_level=default_settings.log_level.lower(),
        access_log=True,
    )
