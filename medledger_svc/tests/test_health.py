"""
Tests for health, readiness, and metrics endpoints.

These tests verify the observability endpoints work correctly:
- /health: Liveness probe
- /ready: Readiness probe with dependency checks
- /metrics: Prometheus-format metrics
- /: Root endpoint with API info
"""
from unittest.mock import MagicMock, patch

import pytest
import redis


@pytest.fixture
def broker_up():
    with patch("api.routers.health.redis.from_url") as from_url:
        from_url.return_value.ping.return_value = True
        yield from_url


@pytest.fixture
def broker_down():
    with patch("api.routers.health.redis.from_url") as from_url:
        from_url.return_value.ping.side_effect = redis.ConnectionError("refused")
        yield from_url


# =============================================================================
# ROOT ENDPOINT TESTS
# =============================================================================

def test_root_endpoint(client):
    """Test the root endpoint returns API info."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "MedLedger Service API"
    assert data["version"] == "1.0.0"
    # Verify links to other endpoints
    assert "health" in data
    assert "ready" in data
    assert "metrics" in data


# =============================================================================
# HEALTH ENDPOINT TESTS (LIVENESS)
# =============================================================================

def test_health_endpoint(client):
    """Test the /health liveness endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert "timestamp" in data


# =============================================================================
# READINESS ENDPOINT TESTS
# =============================================================================

def test_ready_when_all_dependencies_up(client, broker_up):
    response = client.get("/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert {d["name"]: d["status"] for d in data["dependencies"]} == {
        "otp_store": "ok",
        "celery_broker": "ok",
    }


def test_ready_degraded_when_broker_down(client, broker_down):
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"


def test_not_ready_when_store_down(client, broker_up):
    from core import dependencies as deps

    failing_store = MagicMock()
    failing_store.ping.return_value = False

    # The readiness check resolves the store directly, not through Depends
    with patch.object(deps, "get_otp_store", return_value=failing_store):
        response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


# =============================================================================
# METRICS ENDPOINT TESTS
# =============================================================================

def test_metrics_endpoint(client):
    """Test the /metrics Prometheus endpoint."""
    response = client.get("/metrics")
    assert response.status_code == 200
    # Check content type is Prometheus text format
    assert "text/plain" in response.headers.get("content-type", "")
    # Check response contains expected metric names
    content = response.text
    assert "http_requests_total" in content
    assert "http_request_duration_ms" in content
    assert "otp_events_total" in content


def test_metrics_json_endpoint(client):
    """Test the /metrics/json endpoint."""
    response = client.get("/metrics/json")
    assert response.status_code == 200
    data = response.json()
    # Check expected fields exist
    assert "http_requests_total" in data
    assert "http_requests_2xx_total" in data
    assert "http_requests_4xx_total" in data
    assert "http_requests_5xx_total" in data
    assert "http_request_duration_ms_p50" in data
    assert "http_request_duration_ms_p95" in data
    assert "otp_events_total" in data
