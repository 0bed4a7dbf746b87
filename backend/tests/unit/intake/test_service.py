"""Unit tests for the submission service.

Storage is the in-memory store; failing tables exercise the fallback
and demo-mode paths.
"""

import pytest

from wbintake.intake.exceptions import ImmutableFieldError, MissingFieldsError
from wbintake.intake.models import RawSubmission, ReportSource, VapiCall
from wbintake.intake.service import ReportIntakeService
from wbintake.storage import InMemoryReportStore


def _call(call_id: str, transcript: str, status: str = "ended") -> VapiCall:
    return VapiCall.model_validate({"id": call_id, "status": status, "transcript": transcript})


class TestSubmit:
    """Tests for submit and persistence fallback."""

    @pytest.mark.asyncio
    async def test_persists_to_reports(self, service, store, manual_raw):
        result = await service.submit(manual_raw, ReportSource.MANUAL)

        assert result.persisted is True
        assert result.demo_mode is False
        assert result.table == "reports"
        rows = store.tables["reports"]
        assert len(rows) == 1
        assert rows[0]["case_id"] == result.case.case_id
        assert rows[0]["report_source"] == "ManualReport"

    @pytest.mark.asyncio
    async def test_falls_back_to_cases_table(self, normalizer, map_raw):
        store = InMemoryReportStore(fail_tables={"reports"})
        service = ReportIntakeService(normalizer=normalizer, store=store)

        result = await service.submit(map_raw, ReportSource.MAP)

        assert result.persisted is True
        assert result.table == "cases"
        row = store.tables["cases"][0]
        assert row["case_number"] == result.case.case_number
        assert "report_source" not in row
        assert "latitude" not in row

    @pytest.mark.asyncio
    async def test_demo_mode_when_store_unavailable(self, normalizer, manual_raw):
        """Test that the submitter still gets codes when every write fails."""
        store = InMemoryReportStore(fail_tables={"reports", "cases"})
        service = ReportIntakeService(normalizer=normalizer, store=store)

        result = await service.submit(manual_raw, ReportSource.MANUAL)

        assert result.persisted is False
        assert result.demo_mode is True
        assert len(result.case.secret_code) == 12
        assert "reports" in result.persistence_error
        assert "cases" in result.persistence_error
        assert store.tables == {}

    @pytest.mark.asyncio
    async def test_validation_error_stores_nothing(self, service, store):
        with pytest.raises(MissingFieldsError):
            await service.submit(RawSubmission(category="fraud"), ReportSource.MANUAL)

        assert store.tables == {}

    @pytest.mark.asyncio
    async def test_accepts_source_value(self, service, voice_raw):
        result = await service.submit(voice_raw, "VAPIReport")
        assert result.case.report_source == "VAPIReport"


class TestCaseUpdates:
    """Tests for loading and updating stored cases."""

    @pytest.mark.asyncio
    async def test_get_case_round_trip(self, service, manual_raw):
        result = await service.submit(manual_raw, ReportSource.MANUAL)

        loaded = await service.get_case(result.case.case_id)

        assert loaded == result.case

    @pytest.mark.asyncio
    async def test_get_missing_case(self, service):
        assert await service.get_case("NOPE000000") is None

    @pytest.mark.asyncio
    async def test_update_writes_through(self, service, store, manual_raw):
        result = await service.submit(manual_raw, ReportSource.MANUAL)

        updated = await service.update_case(
            result.case, {"status": "under_investigation", "assigned_to": "investigator-7"}
        )

        assert updated.status == "under_investigation"
        assert updated.updated_at > result.case.updated_at
        row = store.tables["reports"][0]
        assert row["status"] == "under_investigation"
        assert row["assigned_to"] == "investigator-7"
        assert row["updated_at"] == updated.updated_at.isoformat()

    @pytest.mark.asyncio
    async def test_update_rejects_identifier_change(self, service, store, manual_raw):
        result = await service.submit(manual_raw, ReportSource.MANUAL)

        with pytest.raises(ImmutableFieldError):
            await service.update_case(result.case, {"tracking_code": "ABCDEFGHIJ"})

        assert store.tables["reports"][0]["tracking_code"] == result.case.tracking_code


class TestIngestVapiCalls:
    """Tests for batch import of vendor calls."""

    @pytest.mark.asyncio
    async def test_skips_unusable_and_duplicate_calls(self, service, store):
        transcript = "My supervisor keeps taking kickbacks from suppliers."
        calls = [
            _call("c1", transcript),
            _call("c1", transcript),
            _call("c2", "Hi?"),
            _call("c3", transcript, status="in-progress"),
        ]

        results = await service.ingest_vapi_calls(calls)

        assert len(results) == 1
        assert results[0].case.vapi_session_id == "c1"
        assert results[0].case.category == "corruption"
        assert len(store.tables["reports"]) == 1

    @pytest.mark.asyncio
    async def test_overlong_spoken_code_does_not_abort_batch(self, service, store):
        first = VapiCall.model_validate(
            {
                "id": "c1",
                "status": "ended",
                "transcript": "My supervisor keeps taking kickbacks from suppliers.",
                "summary": "Kickbacks reported. Your tracking code is " + "Z" * 40,
            }
        )
        calls = [first, _call("c2", "There is an unsafe ladder in the storage room.")]

        results = await service.ingest_vapi_calls(calls)

        assert [result.case.vapi_session_id for result in results] == ["c1", "c2"]
        assert len(results[0].case.tracking_code) == 10

    @pytest.mark.asyncio
    async def test_preview_without_persisting(self, service, store):
        calls = [_call("c1", "There is an unsafe ladder in the storage room.")]

        results = await service.ingest_vapi_calls(calls, persist=False)

        assert len(results) == 1
        assert results[0].persisted is False
        assert store.tables == {}
