"""Submission endpoints for the manual form, map and voice channels."""

from fastapi import APIRouter, Depends

from ..intake.models import ManualSubmission, MapSubmission, ReportSource, VoiceSubmission
from ..intake.service import ReportIntakeService
from . import ErrorResponse, SubmissionResponse, success_payload
from .deps import get_intake_service, rate_limit

router = APIRouter(prefix="/reports", tags=["reports"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Submission rejected"},
    422: {"model": ErrorResponse, "description": "Body is not a valid JSON object"},
    429: {"model": ErrorResponse, "description": "Too many submissions"},
}


@router.post(
    "/manual",
    response_model=SubmissionResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(rate_limit("manual"))],
)
async def submit_manual_report(
    submission: ManualSubmission,
    service: ReportIntakeService = Depends(get_intake_service),
) -> SubmissionResponse:
    """Submit a report through the manual form."""
    result = await service.submit(submission.to_raw(), ReportSource.MANUAL)
    return success_payload(result)


@router.post(
    "/map",
    response_model=SubmissionResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(rate_limit("map"))],
)
async def submit_map_report(
    submission: MapSubmission,
    service: ReportIntakeService = Depends(get_intake_service),
) -> SubmissionResponse:
    """Submit a report pinned to a map location."""
    result = await service.submit(submission.to_raw(), ReportSource.MAP)
    return success_payload(result, message="Map report submitted successfully")


@router.post(
    "/voice",
    response_model=SubmissionResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(rate_limit("voice"))],
)
async def submit_voice_report(
    submission: VoiceSubmission,
    service: ReportIntakeService = Depends(get_intake_service),
) -> SubmissionResponse:
    """Submit the transcript of a finished voice intake call."""
    result = await service.submit(submission.to_raw(), ReportSource.VAPI)
    return success_payload(result, message="Voice report submitted successfully")
