import pytest

from utils.validators import normalize_email, validate_email


def test_normalize_trims_and_lowercases():
    assert normalize_email("  Alice@Example.COM ") == "alice@example.com"


def test_normalize_non_string():
    assert normalize_email(None) == ""
    assert normalize_email(42) == ""


@pytest.mark.parametrize("email", ["a@b.com", "first.last+tag@sub.example.org"])
def test_valid_addresses(email):
    assert validate_email(email) is True


@pytest.mark.parametrize("email", ["", "plain", "a@b", "a b@c.com", "a@@b.com", "@b.com", "a@b." + "c" * 260])
def test_invalid_addresses(email):
    assert validate_email(email) is False
