"""Pytest fixtures for API integration tests.

Each test gets a fresh application with in-memory storage and rate
limit counters, so limits never leak between tests.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from wbintake.config import Settings
from wbintake.intake.ratelimit import InMemoryRateLimitStore
from wbintake.storage import InMemoryReportStore


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="development",
        supabase_url="",
        supabase_service_role_key="",
        supabase_anon_key="",
        vapi_api_key="",
        rate_limit_backend="memory",
    )


@pytest.fixture
def store() -> InMemoryReportStore:
    return InMemoryReportStore()


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store, rate_limit_store=InMemoryRateLimitStore())


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def manual_payload() -> dict:
    return {
        "category": "fraud",
        "title": "Invoice padding",
        "description": "My manager inflates supplier invoices every month.",
        "location": "Head office",
        "dateOccurred": "2025-02-01",
        "anonymous": True,
    }


@pytest.fixture
def map_payload() -> dict:
    return {
        "category": "safety",
        "title": "Blocked fire exit",
        "description": "The fire exit on level 2 has been chained shut.",
        "location": "Warehouse B",
        "coordinates": {"lat": 40.7128, "lng": -74.006},
    }
