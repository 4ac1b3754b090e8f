"""
Verification: fetch -> policy checks -> compare -> mark verified.
"""
import logging

from utils.errors import VerifyResult, VerifyStatus
from utils.otp_helper import (
    MAX_OTP_ATTEMPTS,
    attempts_exhausted,
    attempts_remaining,
    is_expired,
    utcnow,
    verify_otp,
)
from utils.validators import normalize_email

logger = logging.getLogger(__name__)


class VerificationEngine:
    """Handles a "check code" call for one email address."""

    def __init__(self, store, clock=utcnow, max_attempts=MAX_OTP_ATTEMPTS):
        if max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {max_attempts}")
        self.store = store
        self.clock = clock
        self.max_attempts = max_attempts

    @classmethod
    def from_config(cls, config, store, clock=utcnow):
        return cls(store, clock=clock, max_attempts=config.get('OTP_MAX_ATTEMPTS', MAX_OTP_ATTEMPTS))

    def verify_code(self, email, code) -> VerifyResult:
        """
        Check `code` against the outstanding code for `email`.

        The record is read under a row lock so concurrent guesses cannot push
        the attempt counter past the limit. Raises PersistenceError when the
        store fails; every other outcome is a VerifyResult.
        """
        email = normalize_email(email)
        code = code.strip() if isinstance(code, str) else ''

        record = self.store.find_latest_by_email(email, lock=True)
        if record is None:
            self.store.rollback()
            return VerifyResult(VerifyStatus.NOT_FOUND)

        if record.verified:
            self.store.rollback()
            return VerifyResult(VerifyStatus.ALREADY_VERIFIED)

        if is_expired(record.expires_at, self.clock()):
            self.store.rollback()
            logger.info("Expired verification code submitted for %s", email)
            return VerifyResult(VerifyStatus.EXPIRED)

        if attempts_exhausted(record.attempts, self.max_attempts):
            self.store.rollback()
            logger.info("Verification for %s blocked, attempts exhausted", email)
            return VerifyResult(VerifyStatus.ATTEMPTS_EXHAUSTED)

        if not verify_otp(code, record.code_digest):
            attempts = record.attempts + 1
            self.store.upsert(email, attempts=attempts)
            self.store.commit()
            remaining = attempts_remaining(attempts, self.max_attempts)
            logger.info("Wrong verification code for %s, %s attempts remaining", email, remaining)
            return VerifyResult(VerifyStatus.MISMATCH, attempts_remaining=remaining)

        self.store.upsert(email, verified=True)
        self.store.commit()
        logger.info("Email %s verified", email)
        return VerifyResult(VerifyStatus.VERIFIED)
