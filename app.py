"""
Main Flask application entry point for the OTP verification service
"""
import logging
import os

from flask import Flask, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from models import db
from utils.mail import mail, MailDeliveryService


def create_app(config_class=Config, delivery=None, clock=None):
    """
    Application factory pattern. DB init runs inside app_context; non-fatal on failure.

    `delivery` replaces the SMTP delivery service (anything with send(email, otp));
    `clock` replaces the UTC clock used by the OTP policies.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    mail.init_app(app)

    app.extensions['otp_delivery'] = delivery or MailDeliveryService(mail)
    if clock is not None:
        app.extensions['otp_clock'] = clock

    @app.errorhandler(500)
    def handle_500_error(e):
        if request.path.startswith("/auth/"):
            return jsonify({"success": False, "code": "error", "message": "Internal server error. Please try again later."}), 500
        return e

    # Create tables only inside app context; do not crash if DB temporarily unavailable
    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError as e:
            logging.getLogger(__name__).warning("Database init skipped (non-fatal): %s", e.__class__.__name__)

    from routes import public_bp, auth_bp

    app.register_blueprint(public_bp)
    app.register_blueprint(auth_bp)

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "false").lower() in ("true", "1"))
