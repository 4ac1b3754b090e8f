"""
Email verification routes: send OTP, verify OTP (JSON API)
"""
from flask import Blueprint, current_app, jsonify, request

from services import get_issuance_engine, get_verification_engine
from utils.errors import DeliveryError, IssueStatus, PersistenceError, VerifyStatus

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

GENERIC_ERROR = "Something went wrong. Please try again later."
INVALID_EMAIL_MSG = "Please provide a valid email address."
OTP_REQUIRED_MSG = "Email and verification code are required."
OTP_SUCCESS_MSG = "Verification code sent. Check your email."
OTP_SEND_FAIL_MSG = "Unable to send verification code. Please try again later."
OTP_STORE_FAIL_MSG = "Service temporarily unavailable. Please try again later."
OTP_NOT_FOUND_MSG = "No verification code found for this email. Please request a new one."
OTP_ALREADY_VERIFIED_MSG = "This email has already been verified."
OTP_EXPIRED_MSG = "This code has expired. Please request a new one."
OTP_BLOCKED_MSG = "Too many attempts. Please request a new code."
OTP_VERIFY_FAIL_MSG = "Invalid code. Please try again."
OTP_VERIFY_SUCCESS_MSG = "Email verified successfully."

# status -> (HTTP status, message)
VERIFY_RESPONSES = {
    VerifyStatus.VERIFIED: (200, OTP_VERIFY_SUCCESS_MSG),
    VerifyStatus.NOT_FOUND: (404, OTP_NOT_FOUND_MSG),
    VerifyStatus.ALREADY_VERIFIED: (409, OTP_ALREADY_VERIFIED_MSG),
    VerifyStatus.EXPIRED: (410, OTP_EXPIRED_MSG),
    VerifyStatus.ATTEMPTS_EXHAUSTED: (429, OTP_BLOCKED_MSG),
    VerifyStatus.MISMATCH: (400, OTP_VERIFY_FAIL_MSG),
}


def _error(code, message, status, **extra):
    body = {"success": False, "code": code, "message": message}
    body.update(extra)
    return jsonify(body), status


def _request_data():
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form


@auth_bp.route('/send-otp', methods=['POST'])
def api_send_otp():
    """Send a 6-digit OTP to the given email. Input (JSON or form): email."""
    data = _request_data()
    email = data.get("email")
    if not isinstance(email, str) or not email.strip():
        return _error("validation_error", INVALID_EMAIL_MSG, 400)

    try:
        result = get_issuance_engine().request_code(email)
    except DeliveryError:
        return _error(DeliveryError.code, OTP_SEND_FAIL_MSG, 502)
    except PersistenceError as e:
        current_app.logger.error(f"Store failure ({e.kind}) in api_send_otp")
        return _error(PersistenceError.code, OTP_STORE_FAIL_MSG, 503)

    if result.status is IssueStatus.INVALID_EMAIL:
        return _error("validation_error", INVALID_EMAIL_MSG, 400)
    if result.status is IssueStatus.RATE_LIMITED:
        seconds = result.remaining_seconds
        response, status = _error(
            "rate_limited",
            f"Please wait {seconds} seconds before requesting a new code.",
            429,
            cooldownSeconds=seconds,
        )
        response.headers["Retry-After"] = str(seconds)
        return response, status
    return jsonify({"success": True, "message": OTP_SUCCESS_MSG})


@auth_bp.route('/verify-otp', methods=['POST'])
def api_verify_otp():
    """Verify OTP and mark email as verified. Input (JSON or form): email, otp."""
    data = _request_data()
    email = data.get("email")
    otp = data.get("otp")
    if not isinstance(email, str) or not email.strip() or not isinstance(otp, str) or not otp.strip():
        return _error("validation_error", OTP_REQUIRED_MSG, 400)

    try:
        result = get_verification_engine().verify_code(email, otp)
    except PersistenceError as e:
        current_app.logger.error(f"Store failure ({e.kind}) in api_verify_otp")
        return _error(PersistenceError.code, OTP_STORE_FAIL_MSG, 503)

    status, message = VERIFY_RESPONSES[result.status]
    if result.ok:
        return jsonify({"success": True, "message": message})
    if result.status is VerifyStatus.MISMATCH:
        return _error(result.status.value, message, status, attemptsRemaining=result.attempts_remaining)
    return _error(result.status.value, message, status)
