"""
Public routes: health check
"""
from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import db

public_bp = Blueprint('public', __name__)


@public_bp.route('/health', methods=['GET'])
def health():
    """Liveness plus a cheap database round-trip."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        current_app.logger.warning(f"Health check: database unavailable ({e.__class__.__name__})")
        db.session.rollback()
        return jsonify({"status": "degraded", "database": "unavailable"}), 503
    return jsonify({"status": "ok", "database": "ok"})
