"""
Unit tests for DigiLockerService using httpx.MockTransport.
"""
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from core.exceptions import DigiLockerError, InvalidRequestError
from services.digilocker_service import STATE_TTL_SECONDS, DigiLockerService

BASE_URL = "https://digilocker.test/oauth2/1"


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_service(handler=None, clock=None):
    transport = httpx.MockTransport(handler) if handler else None
    return DigiLockerService(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="https://app.test/callback",
        base_url=BASE_URL,
        timeout=5,
        transport=transport,
        clock=clock or Clock(),
    )


def ok_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/token"):
        assert request.method == "POST"
        form = parse_qs(request.content.decode())
        assert form["code"] == ["auth-code"]
        assert form["grant_type"] == ["authorization_code"]
        return httpx.Response(200, json={"access_token": "tok"})
    if request.url.path.endswith("/user"):
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(200, json={
            "name": "Asha Rao",
            "dob": "01-01-1990",
            "gender": "F",
            "aadhaar": "123456789012",
        })
    return httpx.Response(404)


def test_requires_credentials(monkeypatch):
    from services import digilocker_service

    monkeypatch.setattr(digilocker_service.settings, "digilocker_client_id", None)
    with pytest.raises(ValueError):
        DigiLockerService(client_id=None, client_secret="secret", base_url=BASE_URL)


class TestState:
    def test_state_is_single_use(self):
        service = make_service()
        state = service.issue_state()

        assert service.consume_state(state) is True
        assert service.consume_state(state) is False

    def test_unknown_or_empty_state(self):
        service = make_service()
        assert service.consume_state("forged") is False
        assert service.consume_state("") is False
        assert service.consume_state(None) is False

    def test_state_expires(self):
        clock = Clock()
        service = make_service(clock=clock)
        state = service.issue_state()

        clock.now += STATE_TTL_SECONDS
        assert service.consume_state(state) is False


class TestAuthorizationUrl:
    def test_build_authorization_url(self):
        service = make_service()

        url = urlparse(service.build_authorization_url("abc"))

        assert f"{url.scheme}://{url.netloc}{url.path}" == f"{BASE_URL}/authorize"
        query = parse_qs(url.query)
        assert query == {
            "response_type": ["code"],
            "client_id": ["client-id"],
            "redirect_uri": ["https://app.test/callback"],
            "state": ["abc"],
        }


class TestExchangeCode:
    @pytest.mark.asyncio
    async def test_exchange_returns_masked_identity(self):
        service = make_service(ok_handler)
        state = service.issue_state()

        identity = await service.exchange_code("auth-code", state)

        assert identity.name == "Asha Rao"
        assert identity.gender == "F"
        assert identity.verified is True
        assert "123456789012" not in identity.masked_identifier
        assert identity.masked_identifier.endswith("9012")

    @pytest.mark.asyncio
    async def test_missing_code(self):
        service = make_service(ok_handler)
        with pytest.raises(InvalidRequestError):
            await service.exchange_code("")

    @pytest.mark.asyncio
    async def test_unknown_state(self):
        service = make_service(ok_handler)
        with pytest.raises(InvalidRequestError):
            await service.exchange_code("auth-code", "forged")

    @pytest.mark.asyncio
    async def test_token_rejected(self):
        service = make_service(lambda request: httpx.Response(401, json={"error": "invalid_grant"}))
        with pytest.raises(DigiLockerError):
            await service.exchange_code("auth-code")

    @pytest.mark.asyncio
    async def test_token_missing_access_token(self):
        service = make_service(lambda request: httpx.Response(200, json={}))
        with pytest.raises(DigiLockerError):
            await service.exchange_code("auth-code")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        service = make_service(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(DigiLockerError):
            await service.exchange_code("auth-code")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        service = make_service(handler)
        with pytest.raises(DigiLockerError):
            await service.exchange_code("auth-code")
