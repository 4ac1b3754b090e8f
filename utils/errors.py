"""
Outcome types and error taxonomy for OTP issuance and verification.

Routine outcomes (rate limited, wrong code, expired, ...) are returned as
typed results. Infrastructure failures (store, delivery) are raised so the
route layer can choose between retry and surfacing to the user.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class IssueStatus(str, Enum):
    SENT = "sent"
    INVALID_EMAIL = "invalid_email"
    RATE_LIMITED = "rate_limited"


class VerifyStatus(str, Enum):
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    ALREADY_VERIFIED = "already_verified"
    EXPIRED = "expired"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class IssueResult:
    """Outcome of a request-code call. Never carries the code."""
    status: IssueStatus
    remaining_seconds: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status is IssueStatus.SENT


@dataclass(frozen=True)
class VerifyResult:
    """Outcome of a check-code call."""
    status: VerifyStatus
    attempts_remaining: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status is VerifyStatus.VERIFIED


class OTPServiceError(Exception):
    """Base class for failures that are not routine verification outcomes."""
    code = "error"
    retryable = False


class DeliveryError(OTPServiceError):
    """The delivery service could not send the code (or it could not be prepared)."""
    code = "delivery_error"
    retryable = True


class PersistenceError(OTPServiceError):
    """
    The record store failed. `kind` comes from the store's own exception type:
    connection, timeout, constraint, schema or unknown.
    """
    code = "persistence_error"
    retryable = True

    CONNECTION = "connection"
    TIMEOUT = "timeout"
    CONSTRAINT = "constraint"
    SCHEMA = "schema"
    UNKNOWN = "unknown"

    def __init__(self, message, kind=UNKNOWN):
        super().__init__(message)
        self.kind = kind
