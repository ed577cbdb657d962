"""
Shared pytest fixtures for API tests.

Key patterns:

1. Store Isolation: Each test gets a fresh InMemoryOtpStore
2. Controlled Time: Services share a FakeClock so expiry and rate limits are deterministic
3. DI Override: Use app.dependency_overrides to inject test services

Fixture Hierarchy:
    clock → otp_store → otp_service → test_app → client
"""
import os
import pytest
from fastapi.testclient import TestClient
from fastapi import FastAPI

# Set test API key before importing config modules
# This must happen before any config imports
TEST_API_KEY = "test-api-key-for-testing-purposes-12345678"
os.environ.setdefault("MEDLEDGER_API_KEY", TEST_API_KEY)

from core.exceptions import setup_exception_handlers
from core import dependencies as deps
from core.auth import verify_api_key
from core.identifier_registry import IdentifierRegistry
from core.middleware import MetricsCollector
from services.analytics import AnalyticsService
from services.otp_service import OtpService
from services.prescription_service import PrescriptionService
from stores.memory_store import InMemoryOtpStore
from stores.prescription_store import InMemoryPrescriptionStore

REGISTERED_ID = "123456789012"
REGISTERED_PHONE = "+15550001111"
UNREGISTERED_ID = "999999999999"

# 2025-01-01T00:00:00Z
START_TIME = 1735689600.0


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingNotifier:
    """Collects (phone, code) pairs instead of sending SMS."""

    def __init__(self):
        self.sent = []

    def __call__(self, phone: str, code: str) -> None:
        self.sent.append((phone, code))

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_store(clock):
    """Fresh in-memory store driven by the fake clock."""
    return InMemoryOtpStore(clock=clock)


@pytest.fixture
def registry():
    return IdentifierRegistry({REGISTERED_ID: REGISTERED_PHONE})


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def otp_service(otp_store, registry, notifier, clock, metrics):
    """OtpService with a 300s window, 600s retention and 3 attempts."""
    return OtpService(
        store=otp_store,
        registry=registry,
        notifier=notifier,
        ttl_seconds=300,
        retention_seconds=600,
        max_attempts=3,
        clock=clock,
        metrics=metrics,
    )


@pytest.fixture
def analytics_service(clock):
    return AnalyticsService(clock=clock)


@pytest.fixture
def prescription_service(clock):
    return PrescriptionService(store=InMemoryPrescriptionStore(), clock=clock)


@pytest.fixture
def test_app(otp_store, otp_service, analytics_service, prescription_service):
    """
    Create a FastAPI test app with dependency overrides.

    Uses the real routers and exception handlers; services and the store
    are replaced with test instances.
    """
    from api.routers import (
        health_router,
        otp_router,
        analytics_router,
        meta_router,
        prescriptions_router,
    )

    app = FastAPI(title="MedLedger Service API Test")

    # Register exception handlers (same as production)
    setup_exception_handlers(app)

    app.dependency_overrides[deps.get_otp_store] = lambda: otp_store
    app.dependency_overrides[deps.get_otp_service] = lambda: otp_service
    app.dependency_overrides[deps.get_analytics_service] = lambda: analytics_service
    app.dependency_overrides[deps.get_prescription_service] = lambda: prescription_service

    # Override auth to skip API key verification in tests
    async def skip_auth():
        return TEST_API_KEY
    app.dependency_overrides[verify_api_key] = skip_auth

    app.include_router(health_router)
    app.include_router(otp_router)
    app.include_router(analytics_router)
    app.include_router(meta_router)
    app.include_router(prescriptions_router)

    yield app

    # Cleanup: Clear dependency overrides
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)
