"""
Service layer for the OTP gate.

Binds short-lived 6-digit passcodes to 12-digit identifiers, enforces a
fixed-window attempt ceiling and verifies submitted codes. Identifiers
missing from the IdentifierRegistry bypass the gate entirely.

State per identifier:
    NoRecord -> Issued(attempts=0) -> Issued(attempts=N) -> Verified (record deleted)
"Expired" and "RateLimited" are conditions evaluated against Issued, not stored.

Architecture:
    API Layer (routers/otp.py) -> OtpService -> OtpStore (memory | redis)
                                             -> notifier (celery SMS task)
"""
import logging
import re
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Optional

from core.exceptions import (
    InvalidOtpError,
    OtpExpiredError,
    OtpNotFoundError,
    OtpRateLimitError,
    OtpValidationError,
)
from core.identifier_registry import IdentifierRegistry, is_valid_identifier
from core.logging_config import mask_identifier
from core.middleware import MetricsCollector
from stores.base import OtpRecord, OtpStore

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"^\d{6}$")
CODE_MIN = 100000
CODE_MAX = 999999

# Receives (phone, code); must not log or persist the code.
OtpNotifier = Callable[[str, str], None]


@dataclass(frozen=True)
class OtpIssueResult:
    """Outcome of a code request. ``issued`` is False for unregistered identifiers."""
    issued: bool


def generate_code() -> str:
    """Cryptographically random code, uniform over [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


class OtpService:
    """
    Issues and verifies one-time passcodes.

    Args:
        store: Backing OtpStore (injected via core.dependencies.get_otp_service()).
        registry: Identifiers that require verification.
        notifier: Out-of-band delivery of the generated code.
        ttl_seconds: Validity window of a code and length of the rate-limit window.
        retention_seconds: How long the store keeps a record before evicting it.
        max_attempts: Attempts allowed within one window.
        clock: Returns the current time in epoch seconds.
        metrics: Optional collector for OTP outcome counters.
    """

    def __init__(
        self,
        store: OtpStore,
        registry: IdentifierRegistry,
        notifier: OtpNotifier,
        ttl_seconds: int = 300,
        retention_seconds: Optional[int] = None,
        max_attempts: int = 3,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._store = store
        self._registry = registry
        self._notifier = notifier
        self.ttl_seconds = ttl_seconds
        self.retention_seconds = retention_seconds or ttl_seconds * 2
        self.max_attempts = max_attempts
        self._clock = clock
        self._metrics = metrics

    def _record_event(self, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.record_otp_event(outcome)

    def _reject(self, exc: Exception, identifier: str) -> Exception:
        outcome = getattr(exc, "error", "rejected")
        self._record_event(outcome)
        logger.info("OTP rejected", extra={"identifier": mask_identifier(identifier), "reason": outcome})
        return exc

    @staticmethod
    def _validate_identifier(identifier: str) -> None:
        if not is_valid_identifier(identifier):
            raise OtpValidationError("Invalid identifier format")

    def _is_rate_limited(self, record: Optional[OtpRecord], now: float) -> bool:
        if record is None:
            return False
        return record.attempts >= self.max_attempts and now - record.issued_at < self.ttl_seconds

    def request_code(self, identifier: str) -> OtpIssueResult:
        """
        Issue a new code for a registered identifier.

        Returns:
            OtpIssueResult(issued=False) for unregistered identifiers (open access).

        Raises:
            OtpValidationError: If the identifier is not exactly 12 digits.
            OtpRateLimitError: If the current window's attempts are exhausted.
        """
        self._validate_identifier(identifier)

        if not self._registry.is_registered(identifier):
            logger.info("Unregistered identifier, OTP bypassed", extra={"identifier": mask_identifier(identifier)})
            self._record_event("bypassed")
            return OtpIssueResult(issued=False)

        now = self._clock()
        if self._is_rate_limited(self._store.get(identifier), now):
            raise self._reject(OtpRateLimitError(), identifier)

        code = generate_code()
        self._store.put(
            identifier,
            OtpRecord(code=code, issued_at=now, attempts=0),
            ttl_seconds=self.retention_seconds,
        )
        self._notifier(self._registry.phone_for(identifier), code)

        logger.info("OTP issued", extra={"identifier": mask_identifier(identifier)})
        self._record_event("issued")
        return OtpIssueResult(issued=True)

    def verify_code(self, identifier: str, code: Optional[str]) -> None:
        """
        Verify ``code`` against the outstanding record and consume it.

        Every call against an existing record counts as an attempt, including
        the one that trips the rate limit.

        Raises:
            OtpValidationError: Malformed identifier or code.
            OtpNotFoundError: No outstanding code (or it was consumed concurrently).
            OtpRateLimitError: Attempts exhausted within the window.
            InvalidOtpError: Code mismatch.
            OtpExpiredError: Code older than the validity window.
        """
        self._validate_identifier(identifier)

        if not self._registry.is_registered(identifier):
            self._record_event("bypassed")
            return

        if not isinstance(code, str) or not CODE_PATTERN.fullmatch(code):
            raise self._reject(OtpValidationError("Invalid OTP format"), identifier)

        record = self._store.increment_attempts(identifier)
        if record is None:
            raise self._reject(OtpNotFoundError(), identifier)

        now = self._clock()
        if self._is_rate_limited(record, now):
            raise self._reject(OtpRateLimitError(), identifier)

        if not secrets.compare_digest(code, record.code):
            raise self._reject(InvalidOtpError(), identifier)

        if now - record.issued_at > self.ttl_seconds:
            raise self._reject(OtpExpiredError(), identifier)

        if not self._store.delete(identifier):
            # Another request consumed the same code first
            raise self._reject(OtpNotFoundError(), identifier)

        logger.info("OTP verified", extra={"identifier": mask_identifier(identifier)})
        self._record_event("verified")
