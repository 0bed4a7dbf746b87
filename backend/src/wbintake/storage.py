"""Record storage for normalized cases.

The intake pipeline only needs insert/update/select against named
tables. Supabase is used when configured; otherwise an in-memory store
keeps the service usable for development and tests.
"""

import asyncio
from copy import deepcopy
from typing import Any, Protocol

from .config import Settings, get_settings
from .intake.exceptions import PersistenceError
from .logging import get_context_logger

logger = get_context_logger(__name__)


class ReportStore(Protocol):
    """CRUD collaborator used by the intake service."""

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        ...

    async def update(
        self, table: str, record_id: str, patch: dict[str, Any], id_column: str = "case_id"
    ) -> dict[str, Any]:
        ...

    async def select(
        self, table: str, filters: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        ...


# =========================
# In-memory store
# =========================


class InMemoryReportStore:
    """Dict-backed store.

    Args:
        fail_tables: Tables whose writes raise PersistenceError, for
            exercising the fallback paths
    """

    def __init__(self, fail_tables: set[str] | None = None):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.fail_tables = set(fail_tables or ())

    def _check(self, table: str) -> None:
        if table in self.fail_tables:
            raise PersistenceError(table, f"Table '{table}' is unavailable")

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        self._check(table)
        stored = deepcopy(record)
        self.tables.setdefault(table, []).append(stored)
        return deepcopy(stored)

    async def update(
        self, table: str, record_id: str, patch: dict[str, Any], id_column: str = "case_id"
    ) -> dict[str, Any]:
        self._check(table)
        for row in self.tables.get(table, []):
            if row.get(id_column) == record_id:
                row.update(deepcopy(patch))
                return deepcopy(row)
        raise PersistenceError(table, f"No row with {id_column}={record_id}")

    async def select(
        self, table: str, filters: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        filters = filters or {}
        return [
            deepcopy(row)
            for row in self.tables.get(table, [])
            if all(row.get(key) == value for key, value in filters.items())
        ]


# =========================
# Supabase store
# =========================


class SupabaseReportStore:
    """Store backed by Supabase tables.

    The supabase client is synchronous; calls run in a worker thread so
    request handlers stay non-blocking.
    """

    def __init__(self, client):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseReportStore":
        from supabase import create_client

        return cls(create_client(settings.supabase_url, settings.supabase_key))

    async def _run(self, table: str, build) -> list[dict[str, Any]]:
        try:
            response = await asyncio.to_thread(lambda: build(self._client.table(table)).execute())
        except Exception as e:
            raise PersistenceError(table, str(e)) from e
        return response.data or []

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        rows = await self._run(table, lambda t: t.insert(record))
        return rows[0] if rows else record

    async def update(
        self, table: str, record_id: str, patch: dict[str, Any], id_column: str = "case_id"
    ) -> dict[str, Any]:
        rows = await self._run(table, lambda t: t.update(patch).eq(id_column, record_id))
        if not rows:
            raise PersistenceError(table, f"No row with {id_column}={record_id}")
        return rows[0]

    async def select(
        self, table: str, filters: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        def build(query):
            query = query.select("*")
            for key, value in (filters or {}).items():
                query = query.eq(key, value)
            return query.order("created_at", desc=True)

        return await self._run(table, build)


def get_report_store(settings: Settings | None = None) -> ReportStore:
    """Create the configured report store."""
    settings = settings or get_settings()

    if settings.has_supabase:
        logger.info("Using Supabase report store")
        return SupabaseReportStore.from_settings(settings)

    logger.warning("Supabase not configured, using in-memory report store")
    return InMemoryReportStore()
