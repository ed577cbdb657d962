"""
Unit tests for OtpService.
Tests issuance, verification order, fixed-window rate limiting and expiry.
"""
import logging
import pytest

from core.exceptions import (
    InvalidOtpError,
    OtpExpiredError,
    OtpNotFoundError,
    OtpRateLimitError,
    OtpValidationError,
)
from services import otp_service as otp_module
from services.otp_service import OtpService, generate_code
from stores.memory_store import InMemoryOtpStore

# Must match the registry fixture in conftest.py
REGISTERED_ID = "123456789012"
REGISTERED_PHONE = "+15550001111"
UNREGISTERED_ID = "999999999999"


@pytest.fixture
def fixed_code(monkeypatch):
    """Make generated codes deterministic."""
    code = "482915"
    monkeypatch.setattr(otp_module, "generate_code", lambda: code)
    return code


def _wrong(code: str) -> str:
    return "111111" if code != "111111" else "222222"


class TestGenerateCode:
    """Tests for the code generator."""

    def test_code_is_six_digits(self):
        for _ in range(50):
            code = generate_code()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999

    def test_code_bounds(self, monkeypatch):
        monkeypatch.setattr(otp_module.secrets, "randbelow", lambda n: 0)
        assert generate_code() == "100000"
        monkeypatch.setattr(otp_module.secrets, "randbelow", lambda n: n - 1)
        assert generate_code() == "999999"


class TestIdentifierValidation:
    """Tests for identifier format checks."""

    @pytest.mark.parametrize("identifier", ["", "12345", "1234567890123", "12345678901a", " 123456789012"])
    def test_request_rejects_malformed_identifier(self, otp_service, identifier):
        with pytest.raises(OtpValidationError):
            otp_service.request_code(identifier)

    @pytest.mark.parametrize("identifier", ["12345", "abcdefghijkl"])
    def test_verify_rejects_malformed_identifier(self, otp_service, identifier):
        with pytest.raises(OtpValidationError):
            otp_service.verify_code(identifier, "123456")


class TestRequestCode:
    """Tests for request_code."""

    def test_unregistered_identifier_bypasses_gate(self, otp_service, otp_store, notifier):
        result = otp_service.request_code(UNREGISTERED_ID)

        assert result.issued is False
        assert notifier.sent == []
        assert otp_store.get(UNREGISTERED_ID) is None

    def test_registered_identifier_issues_code(self, otp_service, otp_store, notifier, clock):
        result = otp_service.request_code(REGISTERED_ID)

        assert result.issued is True
        assert len(notifier.sent) == 1
        phone, code = notifier.sent[0]
        assert phone == REGISTERED_PHONE

        record = otp_store.get(REGISTERED_ID)
        assert record.code == code
        assert record.attempts == 0
        assert record.issued_at == clock.now

    def test_new_request_overwrites_previous_code(self, otp_service, otp_store, monkeypatch):
        codes = iter(["111111", "222222"])
        monkeypatch.setattr(otp_module, "generate_code", lambda: next(codes))

        otp_service.request_code(REGISTERED_ID)
        otp_service.request_code(REGISTERED_ID)

        assert otp_store.get(REGISTERED_ID).code == "222222"
        with pytest.raises(InvalidOtpError):
            otp_service.verify_code(REGISTERED_ID, "111111")
        otp_service.verify_code(REGISTERED_ID, "222222")

    def test_request_resets_attempts(self, otp_service, otp_store, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        with pytest.raises(InvalidOtpError):
            otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))

        otp_service.request_code(REGISTERED_ID)
        assert otp_store.get(REGISTERED_ID).attempts == 0

    def test_request_blocked_while_rate_limited(self, otp_service, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        for _ in range(3):
            with pytest.raises((InvalidOtpError, OtpRateLimitError)):
                otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))

        with pytest.raises(OtpRateLimitError):
            otp_service.request_code(REGISTERED_ID)

    def test_window_resets_after_ttl(self, otp_service, clock, notifier, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        for _ in range(3):
            with pytest.raises((InvalidOtpError, OtpRateLimitError)):
                otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))

        clock.advance(300)
        result = otp_service.request_code(REGISTERED_ID)

        assert result.issued is True
        assert len(notifier.sent) == 2


class TestVerifyCode:
    """Tests for verify_code."""

    def test_unregistered_identifier_always_succeeds(self, otp_service):
        assert otp_service.verify_code(UNREGISTERED_ID, None) is None
        assert otp_service.verify_code(UNREGISTERED_ID, "not-a-code") is None

    def test_correct_code_succeeds_and_consumes_record(self, otp_service, otp_store, fixed_code):
        otp_service.request_code(REGISTERED_ID)

        otp_service.verify_code(REGISTERED_ID, fixed_code)

        assert otp_store.get(REGISTERED_ID) is None

    def test_code_is_single_use(self, otp_service, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        otp_service.verify_code(REGISTERED_ID, fixed_code)

        with pytest.raises(OtpNotFoundError):
            otp_service.verify_code(REGISTERED_ID, fixed_code)

    def test_no_outstanding_code(self, otp_service):
        with pytest.raises(OtpNotFoundError):
            otp_service.verify_code(REGISTERED_ID, "123456")

    def test_wrong_code_counts_attempt(self, otp_service, otp_store, fixed_code):
        otp_service.request_code(REGISTERED_ID)

        with pytest.raises(InvalidOtpError):
            otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))

        assert otp_store.get(REGISTERED_ID).attempts == 1

    @pytest.mark.parametrize("code", [None, "", "12345", "1234567", "12a456", " 123456"])
    def test_malformed_code_does_not_consume_attempt(self, otp_service, otp_store, fixed_code, code):
        otp_service.request_code(REGISTERED_ID)

        with pytest.raises(OtpValidationError):
            otp_service.verify_code(REGISTERED_ID, code)

        assert otp_store.get(REGISTERED_ID).attempts == 0

    def test_fourth_attempt_is_rate_limited_even_with_correct_code(self, otp_service, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        for _ in range(3):
            with pytest.raises((InvalidOtpError, OtpRateLimitError)):
                otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))

        with pytest.raises(OtpRateLimitError):
            otp_service.verify_code(REGISTERED_ID, fixed_code)

    def test_third_attempt_trips_limit(self, otp_service, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        for _ in range(2):
            with pytest.raises(InvalidOtpError):
                otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))

        # The increment happens before the check, so this call reaches 3 attempts
        with pytest.raises(OtpRateLimitError):
            otp_service.verify_code(REGISTERED_ID, fixed_code)

    def test_expired_code(self, otp_service, clock, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        clock.advance(301)

        with pytest.raises(OtpExpiredError):
            otp_service.verify_code(REGISTERED_ID, fixed_code)

    def test_code_valid_at_window_boundary(self, otp_service, clock, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        clock.advance(300)

        otp_service.verify_code(REGISTERED_ID, fixed_code)

    def test_expired_wins_over_exhausted_attempts_after_window(self, otp_service, clock, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        for _ in range(2):
            with pytest.raises(InvalidOtpError):
                otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))

        clock.advance(301)
        with pytest.raises(OtpExpiredError):
            otp_service.verify_code(REGISTERED_ID, fixed_code)

    def test_mismatch_reported_before_expiry(self, otp_service, clock, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        clock.advance(301)

        with pytest.raises(InvalidOtpError):
            otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))

    def test_record_evicted_after_retention(self, otp_service, clock, fixed_code):
        otp_service.request_code(REGISTERED_ID)
        clock.advance(601)

        with pytest.raises(OtpNotFoundError):
            otp_service.verify_code(REGISTERED_ID, fixed_code)

    def test_concurrent_consumer_wins(self, registry, notifier, clock, fixed_code):
        """If another request deletes the record first, this one must not succeed."""

        class RacingStore(InMemoryOtpStore):
            def delete(self, identifier):
                super().delete(identifier)
                return False

        service = OtpService(store=RacingStore(clock=clock), registry=registry, notifier=notifier, clock=clock)
        service.request_code(REGISTERED_ID)

        with pytest.raises(OtpNotFoundError):
            service.verify_code(REGISTERED_ID, fixed_code)


class TestObservability:
    """Tests for metrics and logging."""

    def test_outcomes_are_counted(self, otp_service, metrics, fixed_code):
        otp_service.request_code(UNREGISTERED_ID)
        otp_service.request_code(REGISTERED_ID)
        with pytest.raises(InvalidOtpError):
            otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))
        otp_service.verify_code(REGISTERED_ID, fixed_code)

        events = metrics.get_summary()["otp_events_total"]
        assert events == {"bypassed": 1, "issued": 1, "invalid_code": 1, "verified": 1}

    def test_code_and_identifier_never_logged(self, otp_service, fixed_code, caplog):
        with caplog.at_level(logging.DEBUG):
            otp_service.request_code(REGISTERED_ID)
            with pytest.raises(InvalidOtpError):
                otp_service.verify_code(REGISTERED_ID, _wrong(fixed_code))
            otp_service.verify_code(REGISTERED_ID, fixed_code)

        assert caplog.records
        for record in caplog.records:
            dumped = f"{record.getMessage()} {record.__dict__}"
            assert fixed_code not in dumped
            assert REGISTERED_ID not in dumped
