"""
Email delivery for verification codes
"""
import smtplib

from flask_mail import Mail, Message
from flask import current_app

from utils.errors import DeliveryError

mail = Mail()


class MailDeliveryService:
    """
    Delivers a plaintext code to an address over SMTP (Flask-Mail).
    `send` returns on success and raises DeliveryError on any failure.
    """

    def __init__(self, mail_ext=None):
        self.mail = mail_ext or mail

    def send(self, email: str, otp: str) -> None:
        config = current_app.config
        if not config.get('MAIL_SERVER') or not config.get('MAIL_USERNAME'):
            current_app.logger.error("Email service is not configured (MAIL_SERVER/MAIL_USERNAME missing)")
            raise DeliveryError("Email service is not configured.")

        msg = build_otp_message(email, otp, config.get('OTP_EXPIRY_MINUTES', 5))
        try:
            self.mail.send(msg)
        except (smtplib.SMTPException, OSError) as e:
            # OSError covers refused connections and socket timeouts
            current_app.logger.error(f"SMTP error sending verification code to {email}: {e.__class__.__name__}", exc_info=True)
            raise DeliveryError("Unable to send verification code.") from e


def build_otp_message(email: str, otp: str, expiry_minutes: int = 5) -> Message:
    """
    OTP verification email. Subject: "Verify Your Email Address".
    Clean HTML template; fallback plain body.
    """
    body = (
        f"Your verification code is: {otp}. "
        f"It expires in {expiry_minutes} minutes. Do not share this code."
    )
    return Message(
        subject="Verify Your Email Address",
        recipients=[email],
        body=body,
        html=_otp_email_html(otp, expiry_minutes),
    )


def _otp_email_html(otp: str, expiry_minutes: int) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"><title>Verify Your Email</title></head>
    <body style="font-family: system-ui, sans-serif; max-width: 480px; margin: 0 auto; padding: 24px;">
        <h2 style="color: #1a1a2e;">Verify Your Email Address</h2>
        <p>Use the code below to verify your email:</p>
        <p style="font-size: 28px; font-weight: bold; letter-spacing: 6px; color: #16213e;">{otp}</p>
        <p style="color: #666;">This code expires in {expiry_minutes} minutes. Do not share it with anyone.</p>
        <hr style="border: none; border-top: 1px solid #eee; margin: 24px 0;">
        <p style="font-size: 12px; color: #999;">If you did not request this, you can ignore this email.</p>
    </body>
    </html>
    """
