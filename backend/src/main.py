"""FastAPI application entry point for the whistleblower report intake API."""

import time
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wbintake import __version__
from wbintake.api import register_exception_handlers
from wbintake.api.cases import router as cases_router
from wbintake.api.middleware import setup_middleware
from wbintake.api.reports import router as reports_router
from wbintake.api.vapi import router as vapi_router
from wbintake.config import Settings, get_settings
from wbintake.intake.normalizer import ReportNormalizer
from wbintake.intake.ratelimit import (
    InMemoryRateLimitStore,
    RateLimitStore,
    RedisRateLimitStore,
    build_rate_limiters,
)
from wbintake.intake.service import ReportIntakeService
from wbintake.logging import get_logger, setup_logging
from wbintake.storage import ReportStore, get_report_store
from wbintake.vapi import VapiClient

# Initialize logging
setup_logging()
logger = get_logger(__name__)


def _build_rate_limit_store(settings: Settings) -> tuple[RateLimitStore, object | None]:
    """Create the configured counter store, plus the Redis client to close on shutdown."""
    if settings.rate_limit_backend == "redis":
        import redis.asyncio as redis

        client = redis.from_url(settings.redis_url, decode_responses=True)
        logger.info("Using Redis rate limit store")
        return RedisRateLimitStore(client), client

    return InMemoryRateLimitStore(), None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    settings = app.state.settings
    logger.info(
        "Starting report intake API",
        extra={
            "environment": settings.environment,
            "debug": settings.api_debug,
            "supabase": settings.has_supabase,
            "vapi": settings.has_vapi,
        },
    )

    yield

    # Shutdown
    logger.info("Shutting down report intake API")
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        await redis_client.aclose()


def create_app(
    settings: Settings | None = None,
    store: ReportStore | None = None,
    rate_limit_store: RateLimitStore | None = None,
    vapi_client: VapiClient | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Build the FastAPI application.

    Collaborators default to those named by settings; tests pass their own.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Whistleblower Intake API",
        description="Report intake for the voice, map and manual form channels",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    redis_client = None
    if rate_limit_store is None:
        rate_limit_store, redis_client = _build_rate_limit_store(settings)

    if vapi_client is None and settings.has_vapi:
        vapi_client = VapiClient.from_settings(settings)

    app.state.settings = settings
    app.state.redis_client = redis_client
    app.state.vapi_client = vapi_client
    app.state.rate_limiters = build_rate_limiters(
        settings.rate_limits, store=rate_limit_store, clock=clock
    )
    app.state.intake_service = ReportIntakeService(
        normalizer=ReportNormalizer(priority_policy=settings.priority_policy),
        store=store if store is not None else get_report_store(settings),
        reports_table=settings.reports_table,
        cases_table=settings.cases_table,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_middleware(app)
    register_exception_handlers(app)

    # =========================
    # Health Check Endpoints
    # =========================

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "service": "wbintake-api"}

    @app.get("/health/ready", tags=["Health"])
    async def readiness_check(request: Request):
        """Readiness check that verifies the rate limit backend."""
        checks = {
            "storage": "supabase" if settings.has_supabase else "memory",
            "redis": "not_configured",
        }

        client = request.app.state.redis_client
        if client is not None:
            try:
                await client.ping()
                checks["redis"] = "healthy"
            except Exception as e:
                checks["redis"] = f"unhealthy: {str(e)}"

        ready = checks["redis"] in ("healthy", "not_configured")
        return JSONResponse(
            status_code=200 if ready else 503,
            content={"status": "ready" if ready else "not_ready", "checks": checks},
        )

    @app.get("/health/live", tags=["Health"])
    async def liveness_check():
        """Liveness check - just confirms the service is running."""
        return {"status": "alive"}

    # =========================
    # API Routers
    # =========================

    app.include_router(reports_router, prefix="/api/v1", tags=["Reports"])
    app.include_router(vapi_router, prefix="/api/v1", tags=["Voice"])
    app.include_router(cases_router, prefix="/api/v1", tags=["Cases"])

    @app.get("/", tags=["Root"])
    async def root():
        """API root endpoint."""
        return {
            "name": "Whistleblower Intake API",
            "version": __version__,
            "docs": "/docs" if settings.is_development else None,
        }

    return app


app = create_app()
