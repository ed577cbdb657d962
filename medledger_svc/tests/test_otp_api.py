"""
Tests for the OTP endpoint.

Uses the fixtures from conftest.py: the router runs against a fresh
in-memory store, a fake clock and a notifier that records codes instead of
sending them.
"""
import pytest

REGISTERED_ID = "123456789012"
UNREGISTERED_ID = "999999999999"

OTP_URL = "/api/v1/otp"


def _send(client, identifier=REGISTERED_ID):
    return client.post(OTP_URL, json={"identifier": identifier, "action": "send"})


def _verify(client, code, identifier=REGISTERED_ID):
    return client.post(OTP_URL, json={"identifier": identifier, "code": code, "action": "verify"})


def _wrong(code):
    return "111111" if code != "111111" else "222222"


# =============================================================================
# SEND
# =============================================================================

class TestSendOtp:
    """Tests for action=send."""

    def test_send_registered_identifier(self, client, notifier):
        response = _send(client)

        assert response.status_code == 200
        assert response.json() == {"success": True, "issued": True}
        assert len(notifier.sent) == 1

    def test_send_unregistered_identifier_bypasses(self, client, notifier):
        response = _send(client, UNREGISTERED_ID)

        assert response.status_code == 200
        assert response.json() == {"success": True, "issued": False}
        assert notifier.sent == []

    def test_send_response_never_contains_code(self, client, notifier):
        response = _send(client)

        assert notifier.last_code not in response.text
        assert set(response.json()) == {"success", "issued"}

    @pytest.mark.parametrize("identifier", ["12345", "12345678901a", ""])
    def test_send_malformed_identifier(self, client, identifier):
        response = _send(client, identifier)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


# =============================================================================
# VERIFY
# =============================================================================

class TestVerifyOtp:
    """Tests for action=verify."""

    def test_full_flow(self, client, notifier):
        _send(client)

        response = _verify(client, notifier.last_code)

        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_code_cannot_be_reused(self, client, notifier):
        _send(client)
        _verify(client, notifier.last_code)

        response = _verify(client, notifier.last_code)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_unregistered_identifier_verifies_without_code(self, client):
        response = client.post(OTP_URL, json={"identifier": UNREGISTERED_ID, "action": "verify"})

        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_verify_without_outstanding_code(self, client):
        response = _verify(client, "123456")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
        assert response.json()["detail"]

    def test_wrong_code(self, client, notifier):
        _send(client)

        response = _verify(client, _wrong(notifier.last_code))

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_code"

    def test_malformed_code(self, client, notifier):
        _send(client)

        response = _verify(client, "12ab56")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_expired_code(self, client, notifier, clock):
        _send(client)
        clock.advance(301)

        response = _verify(client, notifier.last_code)

        assert response.status_code == 400
        assert response.json()["error"] == "expired"

    def test_rate_limited(self, client, notifier):
        _send(client)
        wrong = _wrong(notifier.last_code)

        statuses = [_verify(client, wrong).status_code for _ in range(3)]
        response = _verify(client, notifier.last_code)

        assert statuses == [400, 400, 429]
        assert response.status_code == 429
        assert response.json()["error"] == "rate_limited"

    def test_error_body_shape(self, client, notifier):
        _send(client)

        response = _verify(client, _wrong(notifier.last_code))

        body = response.json()
        assert set(body) == {"detail", "error"}
        assert notifier.last_code not in response.text


# =============================================================================
# REQUEST VALIDATION
# =============================================================================

class TestOtpRequestValidation:
    """Malformed bodies answer 400 validation_error, not FastAPI's 422."""

    def test_invalid_action(self, client):
        response = client.post(OTP_URL, json={"identifier": REGISTERED_ID, "action": "reset"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid action", "error": "validation_error"}

    def test_missing_identifier(self, client):
        response = client.post(OTP_URL, json={"action": "send"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Missing identifier", "error": "validation_error"}

    def test_numeric_identifier(self, client, notifier):
        response = client.post(OTP_URL, json={"identifier": 123456789012, "action": "send"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert notifier.sent == []

    def test_malformed_json(self, client):
        response = client.post(
            OTP_URL,
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid request body", "error": "validation_error"}

    def test_other_routes_keep_default_422(self, client):
        payload = {"metrics": [{"type": "heart_rate", "value": "fast", "timestamp": 0}]}

        response = client.post("/api/v1/analytics/value", json=payload)

        assert response.status_code == 422
        assert isinstance(response.json()["detail"], list)
