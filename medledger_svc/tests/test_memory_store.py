"""
Tests for InMemoryOtpStore.
"""
import threading

from stores.base import OtpRecord
from stores.memory_store import InMemoryOtpStore

IDENTIFIER = "123456789012"


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _record(code="123456", issued_at=1000.0, attempts=0):
    return OtpRecord(code=code, issued_at=issued_at, attempts=attempts)


class TestInMemoryOtpStore:
    """Test suite for the in-process store."""

    def test_put_and_get(self):
        store = InMemoryOtpStore(clock=Clock())
        store.put(IDENTIFIER, _record(), ttl_seconds=600)

        assert store.get(IDENTIFIER) == _record()

    def test_get_missing_returns_none(self):
        store = InMemoryOtpStore(clock=Clock())
        assert store.get(IDENTIFIER) is None

    def test_put_replaces_existing(self):
        store = InMemoryOtpStore(clock=Clock())
        store.put(IDENTIFIER, _record(code="111111", attempts=2), ttl_seconds=600)
        store.put(IDENTIFIER, _record(code="222222"), ttl_seconds=600)

        record = store.get(IDENTIFIER)
        assert record.code == "222222"
        assert record.attempts == 0

    def test_record_evicted_at_ttl(self):
        clock = Clock()
        store = InMemoryOtpStore(clock=clock)
        store.put(IDENTIFIER, _record(), ttl_seconds=600)

        clock.now += 599
        assert store.get(IDENTIFIER) is not None
        clock.now += 1
        assert store.get(IDENTIFIER) is None

    def test_increment_attempts(self):
        store = InMemoryOtpStore(clock=Clock())
        store.put(IDENTIFIER, _record(), ttl_seconds=600)

        assert store.increment_attempts(IDENTIFIER).attempts == 1
        assert store.increment_attempts(IDENTIFIER).attempts == 2
        assert store.get(IDENTIFIER).attempts == 2

    def test_increment_missing_does_not_create(self):
        store = InMemoryOtpStore(clock=Clock())

        assert store.increment_attempts(IDENTIFIER) is None
        assert store.get(IDENTIFIER) is None
        assert len(store) == 0

    def test_increment_after_eviction_does_not_recreate(self):
        clock = Clock()
        store = InMemoryOtpStore(clock=clock)
        store.put(IDENTIFIER, _record(), ttl_seconds=10)
        clock.now += 10

        assert store.increment_attempts(IDENTIFIER) is None
        assert store.get(IDENTIFIER) is None

    def test_increment_keeps_expiry(self):
        clock = Clock()
        store = InMemoryOtpStore(clock=clock)
        store.put(IDENTIFIER, _record(), ttl_seconds=10)

        clock.now += 5
        store.increment_attempts(IDENTIFIER)
        clock.now += 5
        assert store.get(IDENTIFIER) is None

    def test_delete_returns_true_once(self):
        store = InMemoryOtpStore(clock=Clock())
        store.put(IDENTIFIER, _record(), ttl_seconds=600)

        assert store.delete(IDENTIFIER) is True
        assert store.delete(IDENTIFIER) is False
        assert store.get(IDENTIFIER) is None

    def test_delete_expired_returns_false(self):
        clock = Clock()
        store = InMemoryOtpStore(clock=clock)
        store.put(IDENTIFIER, _record(), ttl_seconds=10)
        clock.now += 11

        assert store.delete(IDENTIFIER) is False

    def test_sweep_removes_expired_entries(self):
        clock = Clock()
        store = InMemoryOtpStore(clock=clock, sweep_interval=3600)
        store.put("100000000001", _record(), ttl_seconds=10)
        store.put("100000000002", _record(), ttl_seconds=10)
        store.put("100000000003", _record(), ttl_seconds=100)

        clock.now += 50
        assert len(store) == 3
        assert store.sweep() == 2
        assert len(store) == 1

    def test_periodic_sweep_on_access(self):
        clock = Clock()
        store = InMemoryOtpStore(clock=clock, sweep_interval=60)
        store.put("100000000001", _record(), ttl_seconds=10)

        clock.now += 61
        store.get("100000000002")
        assert len(store) == 0

    def test_ping(self):
        assert InMemoryOtpStore().ping() is True

    def test_concurrent_increments_are_not_lost(self):
        store = InMemoryOtpStore()
        store.put(IDENTIFIER, _record(), ttl_seconds=600)
        results = []

        def worker():
            for _ in range(50):
                results.append(store.increment_attempts(IDENTIFIER).attempts)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get(IDENTIFIER).attempts == 400
        # Every caller observed a distinct count
        assert sorted(results) == list(range(1, 401))
