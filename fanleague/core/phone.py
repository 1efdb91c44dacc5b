"""
Phone number normalization helpers
"""

import re

_NON_DIGITS = re.compile(r"\D")


def strip_plus(phone_number: str) -> str:
    """Remove a leading "+" and surrounding whitespace."""
    return phone_number.strip().lstrip("+")


def normalize_phone_number(phone_number: str) -> str:
    """National number as stored: digits only, no leading "+"."""
    return _NON_DIGITS.sub("", strip_plus(phone_number))


def normalize_country_code(country_code: str) -> str:
    """Country calling code as stored: "+" followed by digits."""
    return "+" + _NON_DIGITS.sub("", country_code)


def to_e164(country_code: str, phone_number: str) -> str:
    """Full number sent to the verification provider, e.g. +15551112222."""
    return normalize_country_code(country_code) + normalize_phone_number(phone_number)


def normalize_e164(phone_number: str) -> str:
    """Accept "+15551112222" or "15551112222" and return "+15551112222"."""
    return "+" + normalize_phone_number(phone_number)
