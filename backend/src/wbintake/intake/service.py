"""Submission pipeline: normalize a report, then hand it to the store.

A store failure never fails the submission. The whistleblower always
receives their tracking and secret codes; the result records whether
the case actually reached storage.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from ..logging import (
    get_context_logger,
    log_case_created,
    log_persistence_failure,
    log_submission_received,
    log_submission_rejected,
)
from .exceptions import PersistenceError, SubmissionValidationError
from .models import Case, RawSubmission, ReportSource, SubmissionResult, VapiCall
from .normalizer import ReportNormalizer
from .sanitization import redact_for_log

if TYPE_CHECKING:
    from ..storage import ReportStore

logger = get_context_logger(__name__)


class ReportIntakeService:
    """Normalizes submissions and persists the resulting cases.

    Args:
        normalizer: Builds cases from raw submissions
        store: Persistence collaborator
        reports_table: Primary table for new cases
        cases_table: Fallback table used when the primary write fails
    """

    def __init__(
        self,
        normalizer: ReportNormalizer,
        store: "ReportStore",
        reports_table: str = "reports",
        cases_table: str = "cases",
    ):
        self.normalizer = normalizer
        self.store = store
        self.reports_table = reports_table
        self.cases_table = cases_table

    async def submit(self, raw: RawSubmission, source: ReportSource) -> SubmissionResult:
        """Normalize and persist one submission.

        Raises:
            SubmissionValidationError: The submission was rejected
        """
        source = ReportSource(source)
        log_submission_received(source.value, redact_for_log(raw.model_dump(exclude_none=True)))

        try:
            case = self.normalizer.normalize(raw, source)
        except SubmissionValidationError as e:
            log_submission_rejected(source.value, e.code, e.details)
            raise

        result = await self.persist(case)
        log_case_created(
            source.value,
            case.case_id,
            case.category,
            case.priority,
            result.persisted,
            result.table,
        )
        return result

    async def persist(self, case: Case) -> SubmissionResult:
        """Write a case to the reports table, falling back to the cases table."""
        errors = []

        attempts = (
            (self.reports_table, case.to_record()),
            (self.cases_table, case.to_case_record()),
        )
        for table, record in attempts:
            try:
                await self.store.insert(table, record)
            except PersistenceError as e:
                log_persistence_failure(case.case_id, table, e.details)
                errors.append(f"{table}: {e.details}")
                continue
            return SubmissionResult(case=case, persisted=True, table=table)

        return SubmissionResult(
            case=case,
            persisted=False,
            persistence_error="; ".join(errors),
        )

    async def update_case(self, case: Case, patch: dict[str, Any]) -> Case:
        """Apply a workflow update to a case and write it through.

        Raises:
            ImmutableFieldError: The patch touches identifiers or provenance
            SubmissionValidationError: The patch carries an unknown value
            PersistenceError: The store rejected the update
        """
        updated = case.apply_update(patch)
        changed = {key: updated.to_record().get(key) for key in patch}
        changed["updated_at"] = updated.updated_at.isoformat()
        await self.store.update(self.reports_table, case.case_id, changed)
        return updated

    async def get_case(self, case_id: str) -> Case | None:
        """Load a case by its case ID from the reports table."""
        rows = await self.store.select(self.reports_table, {"case_id": case_id})
        if not rows:
            return None
        return Case.model_validate(rows[0])

    async def ingest_vapi_calls(
        self, calls: Iterable[VapiCall], persist: bool = True
    ) -> list[SubmissionResult]:
        """Turn finished vendor calls into cases.

        Calls without a usable transcript and repeated session IDs are
        skipped. Validation failures are logged and skipped so one bad
        call does not stop the batch.
        """
        results = []
        seen: set[str] = set()

        for call in calls:
            if call.id in seen:
                continue
            seen.add(call.id)

            try:
                case = self.normalizer.normalize_vapi_call(call)
            except SubmissionValidationError as e:
                log_submission_rejected(ReportSource.VAPI.value, e.code, e.details)
                continue
            if case is None:
                logger.debug(f"Skipping call {call.id} without usable transcript")
                continue

            if persist:
                result = await self.persist(case)
            else:
                result = SubmissionResult(case=case, persisted=False)
            results.append(result)

        logger.info(
            f"Processed {len(results)} voice calls into cases",
            extra={"cases": len(results), "persist": persist},
        )
        return results
