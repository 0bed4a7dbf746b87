"""Pytest fixtures for report intake unit tests."""

import random
from datetime import datetime, timezone

import pytest

from wbintake.intake.identifiers import IdentifierGenerator
from wbintake.intake.models import Coordinates, RawSubmission
from wbintake.intake.normalizer import ReportNormalizer
from wbintake.intake.service import ReportIntakeService
from wbintake.storage import InMemoryReportStore

FIXED_NOW = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock in epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def identifiers() -> IdentifierGenerator:
    """Seeded generator so failures are reproducible."""
    return IdentifierGenerator(
        secure_random=random.Random(42),
        display_random=random.Random(7),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def normalizer(identifiers) -> ReportNormalizer:
    return ReportNormalizer(identifiers=identifiers, clock=lambda: FIXED_NOW)


@pytest.fixture
def store() -> InMemoryReportStore:
    return InMemoryReportStore()


@pytest.fixture
def service(normalizer, store) -> ReportIntakeService:
    return ReportIntakeService(normalizer=normalizer, store=store)


@pytest.fixture
def manual_raw() -> RawSubmission:
    """A complete manual form submission."""
    return RawSubmission(
        category="fraud",
        title="Invoice padding",
        description="My manager inflates supplier invoices every month.",
        location="Head office",
        date_occurred="2025-02-01",
        anonymous=True,
    )


@pytest.fixture
def map_raw() -> RawSubmission:
    """A complete map submission."""
    return RawSubmission(
        category="safety",
        title="Blocked fire exit",
        description="The fire exit on level 2 has been chained shut for weeks.",
        location="Warehouse B",
        coordinates=Coordinates(lat=40.7128, lng=-74.006),
    )


@pytest.fixture
def voice_raw() -> RawSubmission:
    """A voice transcript without a vendor summary."""
    return RawSubmission(
        session_id="call_123",
        transcript=(
            "Um, hello. I saw my supervisor taking a bribe from a contractor. "
            "It happened last week in the parking lot. I have photos."
        ),
    )
