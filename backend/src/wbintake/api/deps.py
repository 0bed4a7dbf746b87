"""FastAPI dependencies for the intake routes.

Services and limiters are created once in ``create_app`` and stored on
``app.state``; these accessors hand them to route handlers.
"""

from collections.abc import Awaitable, Callable

from fastapi import Request

from ..intake.ratelimit import RateLimiter, get_client_identity
from ..intake.service import ReportIntakeService
from ..vapi import VapiClient


def get_intake_service(request: Request) -> ReportIntakeService:
    return request.app.state.intake_service


def get_vapi_client(request: Request) -> VapiClient | None:
    return request.app.state.vapi_client


def rate_limit(scope: str) -> Callable[[Request], Awaitable[None]]:
    """Dependency enforcing the named call site's limit.

    Raises RateLimitExceededError, rendered as 429 by the app handlers.
    """

    async def dependency(request: Request) -> None:
        limiter: RateLimiter = request.app.state.rate_limiters[scope]
        await limiter.check(get_client_identity(request.headers))

    return dependency
