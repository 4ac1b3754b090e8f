"""
OTP issuance and verification services
"""
from flask import current_app

from services.issuance import IssuanceEngine
from services.verification import VerificationEngine
from utils.otp_helper import utcnow
from utils.record_store import OTPRecordStore


def get_issuance_engine():
    """Issuance engine for the current request, wired from app config and extensions."""
    return IssuanceEngine.from_config(
        current_app.config,
        store=OTPRecordStore(),
        delivery=current_app.extensions['otp_delivery'],
        clock=current_app.extensions.get('otp_clock', utcnow),
    )


def get_verification_engine():
    return VerificationEngine.from_config(
        current_app.config,
        store=OTPRecordStore(),
        clock=current_app.extensions.get('otp_clock', utcnow),
    )


__all__ = [
    'IssuanceEngine',
    'VerificationEngine',
    'get_issuance_engine',
    'get_verification_engine',
]
