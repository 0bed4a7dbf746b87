"""Webhook and polling endpoints for the voice intake vendor."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from ..intake.exceptions import SubmissionValidationError, VapiError
from ..intake.service import ReportIntakeService
from ..logging import get_context_logger
from ..vapi import VapiClient, parse_webhook
from . import success_payload
from .deps import get_intake_service, get_vapi_client, rate_limit

logger = get_context_logger(__name__)

router = APIRouter(prefix="/vapi", tags=["vapi"])


@router.post("/webhook", dependencies=[Depends(rate_limit("webhook"))])
async def vapi_webhook(
    payload: dict[str, Any] = Body(...),
    service: ReportIntakeService = Depends(get_intake_service),
) -> dict[str, Any]:
    """Receive call events from the vendor.

    Only finished calls become cases; other events are acknowledged.
    """
    try:
        call = parse_webhook(payload)
    except VapiError as e:
        raise SubmissionValidationError("Invalid webhook payload", e.details, code="INVALID_WEBHOOK") from e

    if call is None:
        return {"success": True, "processed": False, "message": "Event ignored"}

    results = await service.ingest_vapi_calls([call])
    if not results:
        return {
            "success": True,
            "processed": False,
            "message": "Call has no usable transcript",
        }

    response = success_payload(results[0], message="Voice report created")
    return {**response.model_dump(exclude_none=True), "processed": True}


@router.get("/webhook")
async def vapi_webhook_status() -> dict[str, Any]:
    """Confirm the webhook endpoint is reachable."""
    return {"status": "ok", "endpoint": "vapi-webhook"}


@router.get("/reports")
async def list_vapi_reports(
    limit: int = Query(default=100, ge=1, le=1000),
    service: ReportIntakeService = Depends(get_intake_service),
    client: VapiClient | None = Depends(get_vapi_client),
) -> dict[str, Any]:
    """Fetch recent calls from the vendor as normalized previews.

    Nothing is persisted; secret codes are not included.
    """
    if client is None:
        return {"success": True, "reports": [], "count": 0, "source": "unconfigured"}

    calls = await client.list_calls(limit=limit)
    results = await service.ingest_vapi_calls(calls, persist=False)
    reports = []
    for result in results:
        record = result.case.to_record()
        record.pop("secret_code", None)
        reports.append(record)

    logger.info(f"Fetched {len(calls)} calls, {len(reports)} usable reports")
    return {"success": True, "reports": reports, "count": len(reports), "source": "vapi_api"}
