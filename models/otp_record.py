"""
Email OTP record model (PostgreSQL-compatible).
Stores only the hashed code; the plaintext is never persisted.
"""
from models import db


class OTPRecord(db.Model):
    """
    One record per normalized email; overwritten in place on every new send.
    """
    __tablename__ = 'email_otp'

    email = db.Column(db.String(254), primary_key=True)
    code_digest = db.Column(db.String(255), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    verified = db.Column(db.Boolean, nullable=False, default=False)
    last_sent_at = db.Column(db.DateTime, nullable=False)  # throttle reference only
    created_at = db.Column(db.DateTime, nullable=False)

    def snapshot(self):
        """Plain copy of the stored fields, used to restore a prior record."""
        return {
            'email': self.email,
            'code_digest': self.code_digest,
            'expires_at': self.expires_at,
            'attempts': self.attempts,
            'verified': self.verified,
            'last_sent_at': self.last_sent_at,
            'created_at': self.created_at,
        }

    def __repr__(self):
        return f'<OTPRecord {self.email}>'
