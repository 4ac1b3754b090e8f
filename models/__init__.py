"""
Models package for the OTP verification service
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Import all models here to ensure they're registered
from models.otp_record import OTPRecord

__all__ = [
    'db',
    'OTPRecord',
]
