"""
Unit tests for phone number normalization
"""

from fanleague.core.phone import (
    normalize_country_code,
    normalize_e164,
    normalize_phone_number,
    strip_plus,
    to_e164,
)


def test_strip_plus():
    assert strip_plus("+15551112222") == "15551112222"
    assert strip_plus(" 5551112222 ") == "5551112222"


def test_normalize_phone_number_keeps_digits_only():
    assert normalize_phone_number("+1 (555) 111-2222") == "15551112222"
    assert normalize_phone_number("5551112222") == "5551112222"


def test_normalize_country_code():
    assert normalize_country_code("1") == "+1"
    assert normalize_country_code("+966") == "+966"
    assert normalize_country_code(" +44 ") == "+44"


def test_to_e164():
    assert to_e164("+1", "5551112222") == "+15551112222"
    assert to_e164("966", "+501234567") == "+966501234567"


def test_normalize_e164():
    assert normalize_e164("+15551112222") == "+15551112222"
    assert normalize_e164("15551112222") == "+15551112222"
