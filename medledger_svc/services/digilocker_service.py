"""
Service for verifying patient identity through DigiLocker OAuth2.

Flow:
    1. build_authorization_url() -> user is redirected to DigiLocker
    2. DigiLocker redirects back with ``code`` and ``state``
    3. exchange_code() swaps the code for a token and fetches the user profile
"""
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

import httpx

from core.config import settings
from core.exceptions import DigiLockerError, InvalidRequestError
from core.logging_config import mask_identifier

logger = logging.getLogger(__name__)

STATE_TTL_SECONDS = 600


@dataclass(frozen=True)
class VerifiedIdentity:
    """Identity attributes returned by DigiLocker; the identifier is masked."""
    name: Optional[str]
    dob: Optional[str]
    gender: Optional[str]
    masked_identifier: str
    verified: bool = True


class DigiLockerService:
    """Async client for the DigiLocker OAuth2 endpoints."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the DigiLocker service.

        Args:
            client_id: OAuth client id. If not provided, loads from settings.
            client_secret: OAuth client secret. If not provided, loads from settings.
            redirect_uri: Registered redirect URI.
            base_url: OAuth2 API base URL.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
            clock: Epoch-seconds clock for state expiry.

        Raises:
            ValueError: If client credentials are missing.
        """
        self.client_id = client_id or settings.digilocker_client_id
        self.client_secret = client_secret or settings.digilocker_client_secret
        self.redirect_uri = redirect_uri or settings.digilocker_redirect_uri
        self.base_url = (base_url or settings.digilocker_base_url).rstrip("/")
        self.timeout = timeout or settings.digilocker_timeout
        self._transport = transport
        self._clock = clock

        if not self.client_id or not self.client_secret:
            raise ValueError(
                "DIGILOCKER_CLIENT_ID and DIGILOCKER_CLIENT_SECRET environment variables are required."
            )

        # state -> expires_at
        self._pending_states: Dict[str, float] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # STATE
    # =========================================================================

    def issue_state(self) -> str:
        state = secrets.token_urlsafe(24)
        now = self._clock()
        with self._lock:
            self._pending_states = {s: exp for s, exp in self._pending_states.items() if exp > now}
            self._pending_states[state] = now + STATE_TTL_SECONDS
        return state

    def consume_state(self, state: Optional[str]) -> bool:
        """True if ``state`` was issued here, is unexpired and unused."""
        if not state:
            return False
        with self._lock:
            expires_at = self._pending_states.pop(state, None)
        return expires_at is not None and expires_at > self._clock()

    # =========================================================================
    # OAUTH
    # =========================================================================

    def build_authorization_url(self, state: str) -> str:
        query = urlencode({
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": state,
        })
        return f"{self.base_url}/authorize?{query}"

    async def exchange_code(self, code: str, state: Optional[str] = None) -> VerifiedIdentity:
        """
        Exchange an authorization code for the user's verified identity.

        Args:
            code: Authorization code from the callback.
            state: Callback state; checked when given.

        Raises:
            InvalidRequestError: If the code is empty or the state is unknown.
            DigiLockerError: On transport, HTTP or response-shape failures.
        """
        if not code:
            raise InvalidRequestError("No authorization code received")
        if state is not None and not self.consume_state(state):
            raise InvalidRequestError("Invalid or expired state")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            access_token = await self._fetch_token(client, code)
            user = await self._fetch_user(client, access_token)

        identity = VerifiedIdentity(
            name=user.get("name"),
            dob=user.get("dob"),
            gender=user.get("gender"),
            masked_identifier=mask_identifier(str(user.get("aadhaar") or "")),
        )
        logger.info("DigiLocker identity verified", extra={"identifier": identity.masked_identifier})
        return identity

    async def _fetch_token(self, client: httpx.AsyncClient, code: str) -> str:
        data = await self._request_json(
            client,
            "POST",
            f"{self.base_url}/token",
            data={
                "code": code,
                "grant_type": "authorization_code",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
            },
        )
        access_token = data.get("access_token")
        if not access_token:
            logger.error("DigiLocker token response missing access_token")
            raise DigiLockerError()
        return access_token

    async def _fetch_user(self, client: httpx.AsyncClient, access_token: str) -> Dict[str, Any]:
        return await self._request_json(
            client,
            "GET",
            f"{self.base_url}/user",
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def _request_json(self, client: httpx.AsyncClient, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "DigiLocker request rejected",
                extra={"url": url, "status_code": e.response.status_code},
            )
            raise DigiLockerError() from e
        except httpx.HTTPError as e:
            logger.error("DigiLocker request failed", extra={"url": url, "error_type": type(e).__name__})
            raise DigiLockerError() from e
        except ValueError as e:
            logger.error("DigiLocker returned invalid JSON", extra={"url": url})
            raise DigiLockerError() from e

        if not isinstance(data, dict):
            logger.error("DigiLocker returned unexpected payload", extra={"url": url})
            raise DigiLockerError()
        return data
