"""
Tests for the health advisor and DigiLocker identity endpoints.

Services are replaced with mocks through dependency_overrides so no
provider is contacted.
"""
import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from PIL import Image

from core import dependencies as deps
from core.auth import verify_api_key
from core.exceptions import InvalidRequestError, setup_exception_handlers
from services.advisor_service import AdvisorService
from services.digilocker_service import DigiLockerService, VerifiedIdentity


@pytest.fixture
def advisor():
    advisor = MagicMock(spec=AdvisorService)
    advisor.advise.return_value = "Stay hydrated."
    advisor.analyze_symptoms.return_value = {"severity": "mild", "possibleConditions": []}
    advisor.analyze_image.return_value = {
        "analysis": "Mild rash.",
        "image_processed": True,
        "disclaimer": "Not a diagnosis.",
    }
    return advisor


@pytest.fixture
def digilocker():
    return MagicMock(spec=DigiLockerService)


@pytest.fixture
def app(advisor, digilocker):
    from api.routers import advisor_router, identity_router

    app = FastAPI()
    setup_exception_handlers(app)
    app.dependency_overrides[deps.get_advisor_service] = lambda: advisor
    app.dependency_overrides[deps.get_digilocker_service] = lambda: digilocker

    async def skip_auth():
        return "test"
    app.dependency_overrides[verify_api_key] = skip_auth

    app.include_router(advisor_router)
    app.include_router(identity_router)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def api(app):
    return TestClient(app)


def _png():
    buffer = io.BytesIO()
    Image.new("RGB", (10, 10), color="blue").save(buffer, "PNG")
    return buffer.getvalue()


# =============================================================================
# ADVISOR
# =============================================================================

class TestAdvisorEndpoints:
    def test_chat(self, api, advisor):
        response = api.post("/api/v1/advisor/chat", json={"message": "How much water?"})

        assert response.status_code == 200
        assert response.json() == {"output": "Stay hydrated."}
        advisor.advise.assert_called_once_with("How much water?")

    def test_chat_blank_message(self, api):
        response = api.post("/api/v1/advisor/chat", json={"message": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_symptoms(self, api):
        response = api.post("/api/v1/advisor/symptoms", json={"symptoms": "headache"})

        assert response.status_code == 200
        assert response.json()["analysis"]["severity"] == "mild"

    def test_symptoms_blank(self, api):
        response = api.post("/api/v1/advisor/symptoms", json={"symptoms": ""})
        assert response.status_code == 400

    def test_image(self, api, advisor):
        response = api.post(
            "/api/v1/advisor/image",
            files={"image": ("rash.png", _png(), "image/png")},
            data={"description": "itchy"},
        )

        assert response.status_code == 200
        assert response.json()["image_processed"] is True
        args = advisor.analyze_image.call_args[0]
        assert args[1] == "itchy"

    def test_image_wrong_type(self, api):
        response = api.post(
            "/api/v1/advisor/image",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 415
        assert response.json()["error"] == "unsupported_file_type"

    def test_image_extension_mismatch(self, api):
        response = api.post(
            "/api/v1/advisor/image",
            files={"image": ("rash.jpg", _png(), "image/png")},
        )
        assert response.status_code == 415

    def test_image_too_large(self, api, monkeypatch):
        from api.routers import advisor as advisor_module

        monkeypatch.setattr(advisor_module.settings, "medledger_upload_max_size", 10)
        response = api.post(
            "/api/v1/advisor/image",
            files={"image": ("rash.png", _png(), "image/png")},
        )

        assert response.status_code == 413
        assert response.json()["error"] == "file_too_large"

    def test_not_configured_returns_503(self, app, api, monkeypatch):
        del app.dependency_overrides[deps.get_advisor_service]
        monkeypatch.setattr(deps.settings, "gemini_api_key", "")

        response = api.post("/api/v1/advisor/chat", json={"message": "hi"})

        assert response.status_code == 503
        assert response.json()["error"] == "not_configured"


# =============================================================================
# IDENTITY
# =============================================================================

class TestIdentityEndpoints:
    def test_init(self, api, digilocker):
        digilocker.issue_state.return_value = "state-123"
        digilocker.build_authorization_url.return_value = "https://digilocker.test/authorize?state=state-123"

        response = api.get("/api/v1/identity/digilocker/init")

        assert response.status_code == 200
        assert response.json() == {
            "auth_url": "https://digilocker.test/authorize?state=state-123",
            "state": "state-123",
        }

    def test_callback(self, api, digilocker):
        digilocker.exchange_code = AsyncMock(return_value=VerifiedIdentity(
            name="Asha Rao", dob="01-01-1990", gender="F", masked_identifier="********9012",
        ))

        response = api.get("/api/v1/identity/digilocker/callback", params={"code": "abc", "state": "s"})

        assert response.status_code == 200
        assert response.json()["masked_identifier"] == "********9012"
        assert response.json()["verified"] is True
        digilocker.exchange_code.assert_awaited_once_with("abc", "s")

    def test_callback_rejected(self, api, digilocker):
        digilocker.exchange_code = AsyncMock(side_effect=InvalidRequestError("Invalid or expired state"))

        response = api.get("/api/v1/identity/digilocker/callback", params={"code": "abc"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid or expired state", "error": "invalid_request"}

    def test_not_configured_returns_503(self, app, api, monkeypatch):
        del app.dependency_overrides[deps.get_digilocker_service]
        monkeypatch.setattr(deps.settings, "digilocker_client_id", "")

        response = api.get("/api/v1/identity/digilocker/init")

        assert response.status_code == 503
