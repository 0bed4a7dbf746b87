"""Unit tests for report stores."""

from unittest.mock import MagicMock

import pytest

from wbintake.config import Settings
from wbintake.intake.exceptions import PersistenceError
from wbintake.storage import InMemoryReportStore, SupabaseReportStore, get_report_store


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_insert_and_select(self):
        store = InMemoryReportStore()
        await store.insert("reports", {"case_id": "A", "status": "open"})
        await store.insert("reports", {"case_id": "B", "status": "closed"})

        rows = await store.select("reports", {"status": "open"})

        assert rows == [{"case_id": "A", "status": "open"}]

    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self):
        store = InMemoryReportStore()
        record = {"case_id": "A", "data": {"k": 1}}
        await store.insert("reports", record)
        record["data"]["k"] = 2

        rows = await store.select("reports")
        rows[0]["case_id"] = "Z"

        assert store.tables["reports"][0] == {"case_id": "A", "data": {"k": 1}}

    @pytest.mark.asyncio
    async def test_update_missing_row(self):
        with pytest.raises(PersistenceError):
            await InMemoryReportStore().update("reports", "missing", {"status": "closed"})

    @pytest.mark.asyncio
    async def test_failing_table(self):
        store = InMemoryReportStore(fail_tables={"reports"})

        with pytest.raises(PersistenceError) as exc_info:
            await store.insert("reports", {"case_id": "A"})

        assert exc_info.value.code == "DB_ERROR"
        assert exc_info.value.table == "reports"


class TestSupabaseStore:
    """Tests for the Supabase store with a mocked client."""

    @pytest.mark.asyncio
    async def test_insert(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.return_value.data = [{"case_id": "A"}]

        row = await SupabaseReportStore(client).insert("reports", {"case_id": "A"})

        assert row == {"case_id": "A"}
        client.table.assert_called_once_with("reports")
        client.table.return_value.insert.assert_called_once_with({"case_id": "A"})

    @pytest.mark.asyncio
    async def test_errors_become_persistence_errors(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.side_effect = RuntimeError(
            'relation "reports" does not exist'
        )

        with pytest.raises(PersistenceError) as exc_info:
            await SupabaseReportStore(client).insert("reports", {"case_id": "A"})

        assert "does not exist" in exc_info.value.details

    @pytest.mark.asyncio
    async def test_update_filters_by_id(self):
        client = MagicMock()
        query = client.table.return_value.update.return_value
        query.eq.return_value.execute.return_value.data = [{"case_id": "A", "status": "closed"}]

        row = await SupabaseReportStore(client).update("reports", "A", {"status": "closed"})

        assert row["status"] == "closed"
        query.eq.assert_called_once_with("case_id", "A")

    @pytest.mark.asyncio
    async def test_update_no_rows(self):
        client = MagicMock()
        client.table.return_value.update.return_value.eq.return_value.execute.return_value.data = []

        with pytest.raises(PersistenceError):
            await SupabaseReportStore(client).update("reports", "A", {"status": "closed"})

    @pytest.mark.asyncio
    async def test_select(self):
        client = MagicMock()
        query = client.table.return_value.select.return_value
        query.eq.return_value.order.return_value.execute.return_value.data = [{"case_id": "A"}]

        rows = await SupabaseReportStore(client).select("reports", {"case_id": "A"})

        assert rows == [{"case_id": "A"}]
        query.eq.return_value.order.assert_called_once_with("created_at", desc=True)


def test_unconfigured_settings_use_memory_store():
    settings = Settings(_env_file=None, supabase_url="", supabase_service_role_key="")
    assert isinstance(get_report_store(settings), InMemoryReportStore)
