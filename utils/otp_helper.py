"""
OTP generation, hashing and lifecycle policies for email verification.
OTPs are hashed before storage; never store plain OTP in DB.
"""
import math
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from werkzeug.security import generate_password_hash, check_password_hash

# Defaults; the app config can override each of these
OTP_LENGTH = 6
OTP_EXPIRY_MINUTES = 5
OTP_RESEND_COOLDOWN_SECONDS = 60
MAX_OTP_ATTEMPTS = 5


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_otp(length: int = OTP_LENGTH) -> str:
    """Generate a secure numeric OTP, every digit drawn from the OS CSPRNG."""
    return ''.join(secrets.choice('0123456789') for _ in range(length))


def hash_otp(otp: str, method: Optional[str] = None) -> str:
    """Salted, slow one-way digest of an OTP for storage."""
    if method:
        return generate_password_hash(otp, method=method)
    return generate_password_hash(otp)


def verify_otp(plain_otp: str, otp_hash: str) -> bool:
    """Verify a plain OTP against stored hash (constant-time compare)."""
    if not plain_otp or not otp_hash:
        return False
    return check_password_hash(otp_hash, plain_otp)


# ---------- Throttle ----------

def can_resend(last_sent_at: Optional[datetime], now: datetime,
               cooldown_seconds: int = OTP_RESEND_COOLDOWN_SECONDS) -> bool:
    """A new code may be sent when nothing was sent before or the cooldown has passed."""
    if last_sent_at is None:
        return True
    return (now - last_sent_at).total_seconds() >= cooldown_seconds


def resend_wait_seconds(last_sent_at: datetime, now: datetime,
                        cooldown_seconds: int = OTP_RESEND_COOLDOWN_SECONDS) -> int:
    """Whole seconds left in the cooldown, rounded up. At least 1."""
    elapsed = (now - last_sent_at).total_seconds()
    return max(1, math.ceil(cooldown_seconds - elapsed))


# ---------- Expiry ----------

def otp_expires_at(now: datetime, minutes: int = OTP_EXPIRY_MINUTES) -> datetime:
    """Return expiry datetime for a code issued at `now`."""
    return now + timedelta(minutes=minutes)


def is_expired(expires_at: datetime, now: datetime) -> bool:
    return now >= expires_at


# ---------- Attempts ----------

def attempts_exhausted(attempts: int, max_attempts: int = MAX_OTP_ATTEMPTS) -> bool:
    return attempts >= max_attempts


def attempts_remaining(attempts: int, max_attempts: int = MAX_OTP_ATTEMPTS) -> int:
    return max(0, max_attempts - attempts)
