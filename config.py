"""
Configuration for the OTP verification Flask app.
Production (Railway/Render): uses DATABASE_URL only; fails if missing.
Local: DATABASE_URL or DB_* fallback.
"""
import os
from urllib.parse import quote_plus


def _is_production():
    """True when running on Railway, Render, or explicit production."""
    return (
        os.environ.get("RENDER") == "true"
        or os.environ.get("RAILWAY_ENVIRONMENT") is not None
        or os.environ.get("FLASK_ENV") == "production"
    )


def _env_flag(name, default="false"):
    return os.environ.get(name, default).lower() in ("true", "on", "1")


def _positive_int(name, default):
    """Integer setting from the environment; zero or negative values are rejected."""
    raw = os.environ.get(name)
    value = int(raw) if raw and raw.strip() else default
    if value <= 0:
        raise RuntimeError(f"{name} must be a positive integer, got {value}.")
    return value


def _normalize_database_url(url):
    """Convert postgres:// to postgresql+psycopg2:// for SQLAlchemy/psycopg2."""
    if not url:
        return url
    url = url.strip()
    if url.startswith("postgres://"):
        return "postgresql+psycopg2://" + url[11:]
    if url.startswith("postgresql://") and "psycopg2" not in url:
        return "postgresql+psycopg2://" + url[13:]
    return url


def _get_database_uri():
    """Database URI: production = DATABASE_URL only; local = DATABASE_URL or DB_*."""
    if _is_production():
        url = os.environ.get("DATABASE_URL")
        if not url or not url.strip():
            raise RuntimeError(
                "DATABASE_URL is required in production (Railway/Render). "
                "Set it in your service environment variables."
            )
        return _normalize_database_url(url.strip())

    url = os.environ.get("DATABASE_URL")
    if url and url.strip():
        return _normalize_database_url(url.strip())

    host = os.environ.get("DB_HOST", "localhost")
    port = os.environ.get("DB_PORT", "5432")
    name = os.environ.get("DB_NAME", "otp_service")
    user = os.environ.get("DB_USER", "otp_service")
    password = os.environ.get("DB_PASSWORD", "")
    if password:
        password = quote_plus(password)
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"


def _engine_options(uri):
    """Pool and timeout settings; one pool per process, reused across requests."""
    if not uri.startswith("postgresql"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": int(os.environ.get("DB_POOL_SIZE") or 5),
        "pool_timeout": int(os.environ.get("DB_POOL_TIMEOUT") or 10),
        "connect_args": {
            "connect_timeout": int(os.environ.get("DB_CONNECT_TIMEOUT") or 10),
            # statement_timeout in ms; lock waits count toward it
            "options": "-c statement_timeout={}".format(int(os.environ.get("DB_STATEMENT_TIMEOUT_MS") or 10000)),
        },
    }


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key-change-in-production"

    SQLALCHEMY_DATABASE_URI = _get_database_uri()
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options(SQLALCHEMY_DATABASE_URI)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT") or 587)
    MAIL_USE_TLS = _env_flag("MAIL_USE_TLS", "true")
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER") or os.environ.get("MAIL_USERNAME") or "noreply@otp.local"

    # OTP lifecycle
    OTP_LENGTH = 6
    OTP_EXPIRY_MINUTES = _positive_int("OTP_EXPIRY_MINUTES", 5)
    OTP_RESEND_COOLDOWN_SECONDS = _positive_int("OTP_RESEND_COOLDOWN_SECONDS", 60)
    OTP_MAX_ATTEMPTS = _positive_int("OTP_MAX_ATTEMPTS", 5)
    OTP_HASH_METHOD = os.environ.get("OTP_HASH_METHOD") or None  # None = werkzeug default (scrypt)
    OTP_PRESERVE_PRIOR_ON_DELIVERY_FAILURE = _env_flag("OTP_PRESERVE_PRIOR_ON_DELIVERY_FAILURE")


class TestingConfig(Config):
    """In-memory SQLite, mail suppressed, cheap hashing."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    MAIL_SERVER = "localhost"
    MAIL_USERNAME = "test"
    MAIL_SUPPRESS_SEND = True
    OTP_HASH_METHOD = "pbkdf2:sha256:1000"
    OTP_PRESERVE_PRIOR_ON_DELIVERY_FAILURE = False
