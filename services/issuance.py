"""
Issuance: validate -> throttle -> generate -> hash -> persist -> deliver.

The plaintext code exists only inside request_code() and the delivery call.
"""
import logging

from utils.errors import DeliveryError, IssueResult, IssueStatus, PersistenceError
from utils.otp_helper import (
    OTP_EXPIRY_MINUTES,
    OTP_LENGTH,
    OTP_RESEND_COOLDOWN_SECONDS,
    can_resend,
    generate_otp,
    hash_otp,
    otp_expires_at,
    resend_wait_seconds,
    utcnow,
)
from utils.validators import normalize_email, validate_email

logger = logging.getLogger(__name__)


class IssuanceEngine:
    """Handles a "request code" call for one email address."""

    def __init__(self, store, delivery, clock=utcnow,
                 otp_length=OTP_LENGTH,
                 expiry_minutes=OTP_EXPIRY_MINUTES,
                 cooldown_seconds=OTP_RESEND_COOLDOWN_SECONDS,
                 hash_method=None,
                 preserve_prior_on_failure=False):
        for name, value in (('otp_length', otp_length), ('expiry_minutes', expiry_minutes),
                            ('cooldown_seconds', cooldown_seconds)):
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        self.store = store
        self.delivery = delivery
        self.clock = clock
        self.otp_length = otp_length
        self.expiry_minutes = expiry_minutes
        self.cooldown_seconds = cooldown_seconds
        self.hash_method = hash_method
        self.preserve_prior_on_failure = preserve_prior_on_failure

    @classmethod
    def from_config(cls, config, store, delivery, clock=utcnow):
        return cls(
            store,
            delivery,
            clock=clock,
            otp_length=config.get('OTP_LENGTH', OTP_LENGTH),
            expiry_minutes=config.get('OTP_EXPIRY_MINUTES', OTP_EXPIRY_MINUTES),
            cooldown_seconds=config.get('OTP_RESEND_COOLDOWN_SECONDS', OTP_RESEND_COOLDOWN_SECONDS),
            hash_method=config.get('OTP_HASH_METHOD'),
            preserve_prior_on_failure=config.get('OTP_PRESERVE_PRIOR_ON_DELIVERY_FAILURE', False),
        )

    def request_code(self, email) -> IssueResult:
        """
        Issue a fresh code for `email` and hand it to the delivery service.

        Returns SENT, INVALID_EMAIL or RATE_LIMITED. Raises DeliveryError when
        the code could not be prepared or sent (the record is rolled back
        first) and PersistenceError when the store fails.
        """
        email = normalize_email(email)
        if not validate_email(email):
            return IssueResult(IssueStatus.INVALID_EMAIL)
        return self._issue(email, retry_on_conflict=True)

    def _issue(self, email, retry_on_conflict):
        existing = self.store.find_latest_by_email(email, lock=True)
        now = self.clock()

        if existing is not None and not can_resend(existing.last_sent_at, now, self.cooldown_seconds):
            wait = resend_wait_seconds(existing.last_sent_at, now, self.cooldown_seconds)
            self.store.rollback()
            logger.info("OTP request for %s throttled, %ss remaining", email, wait)
            return IssueResult(IssueStatus.RATE_LIMITED, remaining_seconds=wait)

        prior = existing.snapshot() if existing is not None else None

        otp = generate_otp(self.otp_length)
        try:
            digest = hash_otp(otp, self.hash_method)
        except Exception as e:
            self.store.rollback()
            logger.error("Hashing verification code for %s failed", email, exc_info=True)
            raise DeliveryError("Unable to prepare verification code.") from e

        fields = {
            'code_digest': digest,
            'expires_at': otp_expires_at(now, self.expiry_minutes),
            'attempts': 0,
            'verified': False,
            'last_sent_at': now,
        }
        if existing is None:
            fields['created_at'] = now

        try:
            self.store.upsert(email, **fields)
            self.store.commit()
        except PersistenceError as e:
            # Two first-ever requests raced; the primary key let only one insert through
            if e.kind == PersistenceError.CONSTRAINT and existing is None and retry_on_conflict:
                logger.info("Concurrent first OTP request for %s, re-checking throttle", email)
                return self._issue(email, retry_on_conflict=False)
            raise

        try:
            self.delivery.send(email, otp)
        except Exception as e:
            logger.warning("Delivery of verification code to %s failed, rolling back record", email)
            self._compensate(email, prior)
            if isinstance(e, DeliveryError):
                raise
            raise DeliveryError("Unable to send verification code.") from e

        logger.info("Verification code sent to %s", email)
        return IssueResult(IssueStatus.SENT)

    def _compensate(self, email, prior):
        """Undo the write for a code that never reached the user."""
        try:
            if prior is not None and self.preserve_prior_on_failure:
                fields = dict(prior)
                fields.pop('email')
                self.store.upsert(email, **fields)
            else:
                self.store.delete(email)
            self.store.commit()
        except PersistenceError:
            # Already logged by the store; the delivery failure is what the caller sees
            logger.error("Could not roll back OTP record for %s after delivery failure", email)
