"""
OTP store interface.

Stores hold at most one OtpRecord per identifier and evict records on their
own once the retention TTL passes. Attempt counting must be atomic so that
concurrent verifications of the same identifier cannot share an attempt.

IMPORTANT: Store instantiation should be done through the DI layer.
Use core.dependencies.get_otp_store() instead of instantiating directly.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OtpRecord:
    """
    The active passcode for one identifier.

    Attributes:
        code: 6-digit numeric string
        issued_at: Issuance time in epoch seconds
        attempts: Verification attempts made against this code
    """
    code: str
    issued_at: float
    attempts: int = 0


class OtpStore(ABC):
    """Key-value store for OtpRecords keyed by identifier."""

    @abstractmethod
    def get(self, identifier: str) -> Optional[OtpRecord]:
        """Return the current record, or None if absent or evicted."""

    @abstractmethod
    def put(self, identifier: str, record: OtpRecord, ttl_seconds: int) -> None:
        """Store ``record``, replacing any existing one, evicting it after ``ttl_seconds``."""

    @abstractmethod
    def increment_attempts(self, identifier: str) -> Optional[OtpRecord]:
        """
        Atomically add one attempt and return the updated record.

        Returns None (and creates nothing) when no record exists.
        """

    @abstractmethod
    def delete(self, identifier: str) -> bool:
        """Remove the record. True only for the caller that actually removed it."""

    @abstractmethod
    def ping(self) -> bool:
        """True if the backing store is reachable."""
