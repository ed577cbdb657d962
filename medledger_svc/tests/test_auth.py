"""
Tests for API authentication.
"""
import os
import pytest
from fastapi.testclient import TestClient

# Set test API key before importing app
TEST_API_KEY = "test-api-key-for-testing-purposes-12345678"
os.environ.setdefault("MEDLEDGER_API_KEY", TEST_API_KEY)

UNREGISTERED_ID = "999999999999"


@pytest.fixture
def authenticated_client():
    """Create a test client with authenticated routers."""
    from main import app
    return TestClient(app)


@pytest.fixture
def api_key():
    from core.config import API_KEY
    return API_KEY


class TestAuthentication:
    """Test suite for API authentication."""

    def test_missing_api_key_returns_401(self, authenticated_client):
        """Test that requests without API key return 401."""
        response = authenticated_client.post(
            "/api/v1/otp",
            json={"identifier": UNREGISTERED_ID, "action": "send"}
        )
        assert response.status_code == 401
        assert "Missing API key" in response.json()["detail"]

    def test_invalid_api_key_returns_403(self, authenticated_client):
        """Test that requests with invalid API key return 403."""
        response = authenticated_client.post(
            "/api/v1/otp",
            json={"identifier": UNREGISTERED_ID, "action": "send"},
            headers={"X-API-Key": "invalid-key"}
        )
        assert response.status_code == 403
        assert "Invalid API key" in response.json()["detail"]

    def test_valid_api_key_allows_access(self, authenticated_client, api_key):
        """Unregistered identifiers are admitted without a code, so no SMS is queued."""
        response = authenticated_client.post(
            "/api/v1/otp",
            json={"identifier": UNREGISTERED_ID, "action": "send"},
            headers={"X-API-Key": api_key}
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "issued": False}

    def test_root_endpoint_no_auth_required(self, authenticated_client):
        """Test that the root endpoint doesn't require authentication."""
        response = authenticated_client.get("/")
        assert response.status_code == 200
        assert "MedLedger Service API" in response.json()["service"]

    def test_meta_endpoints_no_auth_required(self, authenticated_client):
        response = authenticated_client.get("/api/v1/meta/thresholds")
        assert response.status_code == 200

    @pytest.mark.parametrize(
        "method,path",
        [
            ("post", "/api/v1/analytics/value"),
            ("post", "/api/v1/advisor/chat"),
            ("post", "/api/v1/advisor/symptoms"),
            ("get", "/api/v1/identity/digilocker/init"),
            ("get", "/api/v1/prescriptions"),
            ("get", "/api/v1/prescriptions/analytics"),
        ],
    )
    def test_protected_endpoints_require_auth(self, authenticated_client, method, path):
        response = getattr(authenticated_client, method)(path)
        assert response.status_code == 401

    def test_non_ascii_api_key_returns_403(self, authenticated_client):
        response = authenticated_client.get(
            "/api/v1/prescriptions",
            headers={"X-API-Key": "clé-invalide".encode("utf-8")},
        )
        assert response.status_code == 403
