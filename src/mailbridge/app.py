"""Application entry point serving the email API with FastAPI and uvicorn.

Configures:
- **structlog** with JSON rendering (production) or colored console (development)
- **Sentry** error reporting through the structlog-sentry bridge
- **Unipile provider client** shared by all routes and closed on shutdown
- **Prometheus** metrics on ``/metrics`` and request-ID tracing middleware
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mailbridge.api.routes import router as email_router
from mailbridge.api.schemas import utc_timestamp
from mailbridge.config import Settings, get_settings, validate_credentials
from mailbridge.errors import ProviderError
from mailbridge.health import register_health_routes
from mailbridge.observability.metrics import setup_metrics
from mailbridge.observability.middleware import SERVICE_NAME, RequestIdMiddleware
from mailbridge.observability.sentry import get_sentry_processor, init_sentry
from mailbridge.provider.client import UnipileClient

logger = structlog.get_logger()

SERVICE_VERSION = "2.0.0"


def configure_logging(production: bool = False) -> None:
    """Configure structlog for production (JSON) or development (console).

    Production mode (*production=True*): JSON rendering at INFO level.
    Development mode: colored console rendering at DEBUG level.  In both
    modes ERROR events are forwarded to Sentry (a no-op until
    ``init_sentry`` has run with a DSN).

    Args:
        production: Enable production mode if ``True``.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        get_sentry_processor(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        log_level = logging.INFO
    else:
        renderer = structlog.dev.ConsoleRenderer()
        log_level = logging.DEBUG

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=SERVICE_NAME)


def initialize_services(settings: Settings | None = None) -> dict[str, Any]:
    """Set up the shared services for the application.

    Creates the Unipile provider client when both the base URL and API key
    are configured; otherwise the client is left as ``None`` and the email
    routes answer 503.

    Args:
        settings: Application settings.  If ``None``, ``get_settings()`` is used.

    Returns:
        A dict of initialized service instances keyed by name.
    """
    if settings is None:
        settings = get_settings()

    services: dict[str, Any] = {"_settings": settings}

    provider = None
    api_key = settings.unipile_api_key.get_secret_value()
    if settings.unipile_base_url and api_key:
        provider = UnipileClient(
            settings.unipile_base_url,
            api_key,
            dsn=settings.unipile_dsn,
            timeout=settings.provider_timeout,
        )
        logger.info("UnipileClient initialized", base_url=settings.unipile_base_url)
    else:
        logger.info("UNIPILE_BASE_URL or UNIPILE_API_KEY not set, provider client disabled")
    services["provider"] = provider

    return services


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Lifespan context manager for FastAPI startup and shutdown.

    On shutdown: closes the provider client's connection pool.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application.
    """
    logger.info("FastAPI application starting")
    yield
    provider = app.state.services.get("provider")
    if provider is not None:
        await provider.aclose()
        logger.info("Provider client closed")


async def _provider_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a ``ProviderError`` as a 502 JSON response."""
    status_code = exc.status_code if isinstance(exc, ProviderError) else None
    logger.warning("Provider error returned to client", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=502,
        content={
            "success": False,
            "message": "Email provider request failed",
            "error": str(exc),
            "providerStatus": status_code,
            "timestamp": utc_timestamp(),
        },
    )


def create_app(services: dict[str, Any]) -> FastAPI:
    """Create the FastAPI app with lifespan, email routes, health and metrics.

    Args:
        services: The initialized services dict from ``initialize_services``.

    Returns:
        The configured FastAPI application.
    """
    fastapi_app = FastAPI(title="Mailbridge Email API", version=SERVICE_VERSION, lifespan=lifespan)
    fastapi_app.state.services = services
    fastapi_app.state.settings = services.get("_settings") or get_settings()

    fastapi_app.add_middleware(RequestIdMiddleware)
    fastapi_app.add_exception_handler(ProviderError, _provider_error_handler)
    fastapi_app.include_router(email_router)
    register_health_routes(fastapi_app)
    setup_metrics(fastapi_app)

    @fastapi_app.get("/")
    async def index() -> dict[str, Any]:
        """Describe the service and its endpoints."""
        endpoints = sorted(
            f"{method} {route.path}"
            for route in fastapi_app.routes
            if getattr(route, "path", "").startswith("/api/")
            for method in getattr(route, "methods", None) or ()
        )
        return {
            "success": True,
            "service": "Mailbridge Email API",
            "version": SERVICE_VERSION,
            "status": "running",
            "endpoints": endpoints,
            "timestamp": utc_timestamp(),
        }

    return fastapi_app


async def main() -> None:
    """Main entry point: configure, validate credentials, and serve.

    1. Configure logging and Sentry
    2. Validate provider credentials
    3. Initialize services and create the FastAPI app
    4. Run uvicorn until shutdown
    """
    settings = get_settings()
    configure_logging(production=settings.production)
    init_sentry(settings.sentry_dsn, production=settings.production)
    logger.info("Application starting")

    validate_credentials(settings)

    services = initialize_services(settings)
    fastapi_app = create_app(services)

    config = uvicorn.Config(
        fastapi_app,
        host="0.0.0.0",
        port=settings.port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
