"""
In-process OTP store.

Suitable for a single server instance and for tests. Entries carry their own
expiry; expired entries are invisible immediately and are swept out of the
dict periodically so memory does not grow with abandoned codes.
"""
import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, Optional, Tuple

from stores.base import OtpRecord, OtpStore

logger = logging.getLogger(__name__)


class InMemoryOtpStore(OtpStore):
    """
    Dict-backed OtpStore guarded by a lock.

    Args:
        clock: Returns the current time in epoch seconds.
        sweep_interval: Seconds between opportunistic sweeps of expired entries.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        sweep_interval: float = 60.0,
    ):
        self._clock = clock
        self.sweep_interval = sweep_interval

        # identifier -> (record, expires_at)
        self._entries: Dict[str, Tuple[OtpRecord, float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def _live_entry(self, identifier: str, now: float) -> Optional[OtpRecord]:
        """Return the record if present and unexpired. Caller holds the lock."""
        entry = self._entries.get(identifier)
        if entry is None:
            return None
        record, expires_at = entry
        if now >= expires_at:
            del self._entries[identifier]
            return None
        return record

    def _maybe_sweep(self, now: float) -> None:
        """Sweep expired entries if the interval has passed. Caller holds the lock."""
        if now - self._last_sweep < self.sweep_interval:
            return
        self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for identifier in expired:
            del self._entries[identifier]
        self._last_sweep = now
        if expired:
            logger.debug(f"OTP store sweep: evicted {len(expired)} expired records")
        return len(expired)

    def sweep(self) -> int:
        """Evict all expired entries now. Returns the number evicted."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def get(self, identifier: str) -> Optional[OtpRecord]:
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            return self._live_entry(identifier, now)

    def put(self, identifier: str, record: OtpRecord, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            self._entries[identifier] = (record, now + ttl_seconds)

    def increment_attempts(self, identifier: str) -> Optional[OtpRecord]:
        with self._lock:
            now = self._clock()
            record = self._live_entry(identifier, now)
            if record is None:
                return None
            updated = replace(record, attempts=record.attempts + 1)
            _, expires_at = self._entries[identifier]
            self._entries[identifier] = (updated, expires_at)
            return updated

    def delete(self, identifier: str) -> bool:
        with self._lock:
            if self._live_entry(identifier, self._clock()) is None:
                return False
            del self._entries[identifier]
            return True

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
