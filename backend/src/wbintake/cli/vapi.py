"""CLI commands for the voice intake vendor."""

import asyncio
import json
import sys

import click

from ..config import get_settings
from ..intake.exceptions import VapiError
from ..intake.normalizer import ReportNormalizer
from ..intake.service import ReportIntakeService
from ..storage import get_report_store
from ..vapi import VapiClient


@click.group("vapi")
def vapi_group() -> None:
    """Work with voice intake calls."""
    pass


@vapi_group.command("test")
def test_connection() -> None:
    """Check the configured VAPI credentials."""
    settings = get_settings()
    if not settings.has_vapi:
        click.echo("VAPI_API_KEY is not configured", err=True)
        sys.exit(1)

    ok = asyncio.run(VapiClient.from_settings(settings).test_connection())
    click.echo("Connection OK" if ok else "Connection failed")
    if not ok:
        sys.exit(1)


@vapi_group.command("sync")
@click.option("--limit", default=100, type=int, help="Calls to fetch (default: 100)")
@click.option("--persist", is_flag=True, help="Store the resulting cases")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def sync_calls(limit: int, persist: bool, as_json: bool) -> None:
    """Pull finished calls and normalize them into cases."""
    settings = get_settings()
    if not settings.has_vapi:
        click.echo("VAPI_API_KEY is not configured", err=True)
        sys.exit(1)

    async def _sync() -> None:
        client = VapiClient.from_settings(settings)
        service = ReportIntakeService(
            normalizer=ReportNormalizer(priority_policy=settings.priority_policy),
            store=get_report_store(settings),
            reports_table=settings.reports_table,
            cases_table=settings.cases_table,
        )

        try:
            calls = await client.list_calls(limit=limit)
        except VapiError as e:
            click.echo(f"VAPI request failed: {e.details}", err=True)
            sys.exit(1)

        results = await service.ingest_vapi_calls(calls, persist=persist)

        if as_json:
            data = [
                {**r.case.to_record(), "persisted": r.persisted, "table": r.table}
                for r in results
            ]
            click.echo(json.dumps(data, indent=2))
            return

        click.echo(f"Fetched {len(calls)} calls, {len(results)} usable reports")
        for result in results:
            case = result.case
            stored = f"stored in {result.table}" if result.persisted else "not stored"
            click.echo(f"  {case.case_number}  {case.category:<15} {case.priority:<9} {stored}")
            click.echo(f"    {case.title}")

    asyncio.run(_sync())
