import re
from datetime import datetime, timedelta

from utils import otp_helper
from utils.otp_helper import (
    attempts_exhausted,
    attempts_remaining,
    can_resend,
    generate_otp,
    hash_otp,
    is_expired,
    otp_expires_at,
    resend_wait_seconds,
    verify_otp,
)

T0 = datetime(2026, 1, 1, 12, 0, 0)
FAST_HASH = "pbkdf2:sha256:1000"


def test_generate_otp_is_six_digits():
    for _ in range(200):
        assert re.fullmatch(r"\d{6}", generate_otp())


def test_generate_otp_draws_independently():
    codes = {generate_otp() for _ in range(50)}
    assert len(codes) > 45


def test_generate_otp_can_start_with_zero(monkeypatch):
    monkeypatch.setattr(otp_helper.secrets, "choice", lambda seq: "0")
    assert generate_otp() == "000000"


def test_hash_is_one_way_and_salted():
    digest = hash_otp("123456", FAST_HASH)
    assert "123456" not in digest
    assert hash_otp("123456", FAST_HASH) != digest
    assert verify_otp("123456", digest) is True
    assert verify_otp("123457", digest) is False


def test_default_hash_method_verifies():
    digest = hash_otp("000000")
    assert verify_otp("000000", digest) is True


def test_verify_otp_rejects_empty_input():
    digest = hash_otp("123456", FAST_HASH)
    assert verify_otp("", digest) is False
    assert verify_otp("123456", "") is False


def test_first_send_is_never_throttled():
    assert can_resend(None, T0) is True


def test_throttle_boundary():
    assert can_resend(T0, T0 + timedelta(seconds=59.9)) is False
    assert can_resend(T0, T0 + timedelta(seconds=60)) is True


def test_resend_wait_rounds_up_and_is_at_least_one():
    assert resend_wait_seconds(T0, T0) == 60
    assert resend_wait_seconds(T0, T0 + timedelta(seconds=20.5)) == 40
    assert resend_wait_seconds(T0, T0 + timedelta(seconds=59.99)) == 1


def test_expiry_is_five_minutes_and_inclusive():
    expires = otp_expires_at(T0)
    assert expires == T0 + timedelta(minutes=5)
    assert expires > T0
    assert is_expired(expires, expires - timedelta(seconds=1)) is False
    assert is_expired(expires, expires) is True


def test_attempt_limits():
    assert attempts_exhausted(4, 5) is False
    assert attempts_exhausted(5, 5) is True
    assert attempts_remaining(3, 5) == 2
    assert attempts_remaining(7, 5) == 0
