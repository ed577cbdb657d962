"""
Redis-backed OTP store for multi-instance deployments.

Each identifier maps to a hash ``otp:<identifier>`` with ``code``,
``issued_at`` and ``attempts`` fields. Redis evicts the hash through its
native key TTL, and attempt counting runs server-side in a Lua script so
check-and-increment is a single atomic step.
"""
import logging
from typing import Optional

import redis

from core.exceptions import OtpStoreUnavailableError
from core.logging_config import mask_identifier
from stores.base import OtpRecord, OtpStore

logger = logging.getLogger(__name__)

# Returns nil when the key is gone; never recreates an evicted record.
_INCREMENT_ATTEMPTS_LUA = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return nil
end
local attempts = redis.call('HINCRBY', KEYS[1], 'attempts', 1)
local fields = redis.call('HMGET', KEYS[1], 'code', 'issued_at')
return {fields[1], fields[2], attempts}
"""


class RedisOtpStore(OtpStore):
    """
    OtpStore on top of a redis-py client.

    Args:
        client: A ``redis.Redis`` created with ``decode_responses=True``.
        key_prefix: Namespace for OTP keys.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "otp:"):
        self._client = client
        self.key_prefix = key_prefix
        self._increment_script = client.register_script(_INCREMENT_ATTEMPTS_LUA)

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 2.0) -> "RedisOtpStore":
        """Create a store from a Redis URL such as ``redis://localhost:6379/0``."""
        client = redis.Redis.from_url(url, decode_responses=True, socket_timeout=socket_timeout)
        return cls(client)

    def _key(self, identifier: str) -> str:
        return f"{self.key_prefix}{identifier}"

    def get(self, identifier: str) -> Optional[OtpRecord]:
        try:
            data = self._client.hgetall(self._key(identifier))
        except redis.RedisError as e:
            logger.error("OTP store read failed", extra={"identifier": mask_identifier(identifier), "error": str(e)})
            raise OtpStoreUnavailableError() from e
        if not data:
            return None
        return OtpRecord(
            code=data["code"],
            issued_at=float(data["issued_at"]),
            attempts=int(data.get("attempts", 0)),
        )

    def put(self, identifier: str, record: OtpRecord, ttl_seconds: int) -> None:
        key = self._key(identifier)
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.delete(key)
            pipe.hset(key, mapping={
                "code": record.code,
                "issued_at": repr(record.issued_at),
                "attempts": record.attempts,
            })
            pipe.expire(key, ttl_seconds)
            pipe.execute()
        except redis.RedisError as e:
            logger.error("OTP store write failed", extra={"identifier": mask_identifier(identifier), "error": str(e)})
            raise OtpStoreUnavailableError() from e

    def increment_attempts(self, identifier: str) -> Optional[OtpRecord]:
        try:
            result = self._increment_script(keys=[self._key(identifier)])
        except redis.RedisError as e:
            logger.error("OTP attempt increment failed", extra={"identifier": mask_identifier(identifier), "error": str(e)})
            raise OtpStoreUnavailableError() from e
        if result is None:
            return None
        code, issued_at, attempts = result
        return OtpRecord(code=code, issued_at=float(issued_at), attempts=int(attempts))

    def delete(self, identifier: str) -> bool:
        try:
            return self._client.delete(self._key(identifier)) == 1
        except redis.RedisError as e:
            logger.error("OTP store delete failed", extra={"identifier": mask_identifier(identifier), "error": str(e)})
            raise OtpStoreUnavailableError() from e

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.warning("OTP store ping failed", extra={"error": str(e)})
            return False
