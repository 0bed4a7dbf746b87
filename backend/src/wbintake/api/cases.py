"""Case lookup and workflow update endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from ..intake.models import Case
from ..intake.service import ReportIntakeService
from .deps import get_intake_service

router = APIRouter(prefix="/cases", tags=["cases"])


def _public_record(case: Case) -> dict[str, Any]:
    record = case.to_record()
    record.pop("secret_code", None)
    return record


async def _load_case(service: ReportIntakeService, case_id: str) -> Case:
    case = await service.get_case(case_id)
    if case is None:
        raise HTTPException(status_code=404, detail="Case not found")
    return case


@router.get("/{case_id}")
async def get_case(
    case_id: str,
    service: ReportIntakeService = Depends(get_intake_service),
) -> dict[str, Any]:
    """Get a case by its case ID."""
    case = await _load_case(service, case_id)
    return {"success": True, "case": _public_record(case)}


@router.patch("/{case_id}")
async def update_case(
    case_id: str,
    patch: dict[str, Any] = Body(...),
    service: ReportIntakeService = Depends(get_intake_service),
) -> dict[str, Any]:
    """Update workflow fields such as status, priority, assignment and notes.

    Identifiers, provenance and creation time cannot be changed.
    """
    case = await _load_case(service, case_id)
    updated = await service.update_case(case, patch)
    return {"success": True, "case": _public_record(updated)}
