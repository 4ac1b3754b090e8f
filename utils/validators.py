"""
Input validation helpers
"""
import re

# local@domain.tld, no whitespace, exactly one "@"
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
MAX_EMAIL_LENGTH = 254


def normalize_email(email):
    """Trim and lower-case an address. Non-strings normalize to ''."""
    if not isinstance(email, str):
        return ''
    return email.strip().lower()


def validate_email(email):
    """True if `email` (already normalized) is a syntactically well-formed address."""
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return False
    return EMAIL_PATTERN.match(email) is not None
