"""
Validation helpers for UK postcodes and shipping addresses.

Postcodes are matched after removing all whitespace, so "SW1A 1AA",
"SW1A1AA" and "sw1a 1aa" are all accepted: area (1-2 letters), district
(1-2 digits), optional sector letter, sector digit, two unit letters.
"""
import re
from typing import Optional

UK_POSTCODE_PATTERN = re.compile(r"^[A-Z]{1,2}\d{1,2}[A-Z]?\d[A-Z]{2}$", re.IGNORECASE)

_WHITESPACE = re.compile(r"\s")


def _strip_whitespace(value: str) -> str:
    return _WHITESPACE.sub("", value)


def validate_uk_postcode(postcode) -> bool:
    if not postcode or not isinstance(postcode, str):
        return False
    return bool(UK_POSTCODE_PATTERN.match(_strip_whitespace(postcode)))


def format_uk_postcode(postcode) -> str:
    """Uppercases and puts a single space before the inward code ("sw1a1aa" -> "SW1A 1AA")."""
    if not postcode or not isinstance(postcode, str):
        return ""

    cleaned = _strip_whitespace(postcode).upper()
    if 5 <= len(cleaned) <= 7:
        return f"{cleaned[:-3]} {cleaned[-3:]}"
    return cleaned


def validate_address(
    address_line1: Optional[str],
    city: Optional[str],
    postcode: Optional[str],
) -> tuple[bool, list[str]]:
    errors = []

    if not address_line1 or not address_line1.strip():
        errors.append("Address line 1 is required")
    elif len(address_line1.strip()) < 3:
        errors.append("Address line 1 must be at least 3 characters")

    if not city or not city.strip():
        errors.append("City is required")
    elif len(city.strip()) < 2:
        errors.append("City must be at least 2 characters")

    if not postcode or not postcode.strip():
        errors.append("Postcode is required")
    elif not validate_uk_postcode(postcode):
        errors.append("Invalid UK postcode format")

    return len(errors) == 0, errors


def sanitize_input(value) -> str:
    """Trims, drops angle brackets and caps free text at 200 characters."""
    if not value or not isinstance(value, str):
        return ""
    return re.sub(r"[<>]", "", value.strip())[:200]
