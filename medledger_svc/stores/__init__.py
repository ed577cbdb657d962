"""
Store layer for OTP state.

This module contains the key-value stores that hold issued one-time passcodes.
"""
from stores.base import OtpRecord, OtpStore
from stores.memory_store import InMemoryOtpStore
from stores.redis_store import RedisOtpStore

__all__ = [
    "OtpRecord",
    "OtpStore",
    "InMemoryOtpStore",
    "RedisOtpStore",
]
