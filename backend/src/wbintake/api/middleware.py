"""API middleware for request tracing and security headers.

Rate limiting is applied per route through ``deps.rate_limit`` so each
submission channel keeps its own limit.
"""

import time
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ..config import get_settings
from ..logging import get_logger, log_api_request

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        # Submissions may carry identifying details
        response.headers["Cache-Control"] = "no-store"

        # HSTS (only in production with HTTPS)
        settings = getattr(request.app.state, "settings", None) or get_settings()
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID for tracing and log each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Add request ID to request state and response headers.

        Args:
            request: Incoming request
            call_next: Next middleware/handler

        Returns:
            Response with request ID header
        """
        # Check for existing request ID from client
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        log_api_request(
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id=request_id,
        )
        return response


def setup_middleware(app) -> None:
    """Configure all middleware for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    # Order matters: the last added runs outermost
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    logger.info("API middleware configured")
