"""FastAPI routes and API modules for report intake.

Provides common response models, error handlers, and utilities.
"""

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..intake.exceptions import (
    ImmutableFieldError,
    IntakeError,
    RateLimitExceededError,
    SubmissionValidationError,
    VapiError,
)
from ..intake.models import SubmissionResult
from ..logging import get_logger


# =========================
# Response Models
# =========================


class ErrorResponse(BaseModel):
    """Standard error response."""

    success: bool = False
    error: str
    details: str | None = None
    code: str


class SubmissionResponse(BaseModel):
    """Response returned to a whistleblower after a submission."""

    success: bool = True
    case_id: str
    case_number: str
    report_id: str
    tracking_code: str
    secret_code: str
    category: str
    priority: str
    report_source: str
    message: str
    demo_mode: bool | None = None


# =========================
# Exception Handlers
# =========================


def _status_for(exc: IntakeError) -> int:
    if isinstance(exc, RateLimitExceededError):
        return 429
    if isinstance(exc, (SubmissionValidationError, ImmutableFieldError)):
        return 400
    if isinstance(exc, VapiError):
        return 502
    # PersistenceError and anything unexpected
    return 500


async def intake_error_handler(request: Request, exc: IntakeError) -> JSONResponse:
    """Handle intake errors with their machine-readable code."""
    headers = {"X-Error-Code": exc.code}
    if isinstance(exc, RateLimitExceededError):
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=_status_for(exc),
        content=ErrorResponse(
            error=exc.message,
            details=exc.details,
            code=exc.code,
        ).model_dump(),
        headers=headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle bodies that are not JSON objects or carry wrong types."""
    problems = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error="Invalid request",
            details="; ".join(problems) or "Request body could not be parsed",
            code="INVALID_REQUEST",
        ).model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle generic HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            code="HTTP_ERROR",
        ).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger = get_logger(__name__)
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            details="An unexpected error occurred",
            code="INTERNAL_ERROR",
        ).model_dump(),
    )


def register_exception_handlers(app) -> None:
    """Register exception handlers with the FastAPI app."""
    app.add_exception_handler(IntakeError, intake_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)


def success_payload(result: SubmissionResult, message: str = "Report submitted successfully") -> SubmissionResponse:
    """Build the submission response from a SubmissionResult."""
    case = result.case
    return SubmissionResponse(
        case_id=case.case_id,
        case_number=case.case_number,
        report_id=case.report_id,
        tracking_code=case.tracking_code,
        secret_code=case.secret_code,
        category=case.category,
        priority=case.priority,
        report_source=case.report_source,
        message=f"{message} (demo mode)" if result.demo_mode else message,
        demo_mode=True if result.demo_mode else None,
    )
