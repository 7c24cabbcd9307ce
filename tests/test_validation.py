"""Tests for postcode and address validation helpers."""

import pytest

from shared.validation import (
    format_uk_postcode,
    sanitize_input,
    validate_address,
    validate_uk_postcode,
)


class TestValidateUkPostcode:
    @pytest.mark.parametrize(
        "postcode",
        ["SW1A 1AA", "SW1A1AA", "sw1a 1aa", "M1 1AE", "B33 8TH", "CR2 6XH", "DN55 1PT", "EC1A 1BB", " W1A 0AX "],
    )
    def test_accepts_valid_postcodes(self, postcode):
        assert validate_uk_postcode(postcode) is True

    @pytest.mark.parametrize("postcode", ["", "12345", "SW1A", "SW1A 1A", "ABC 123", "SW1A-1AA", None, 12345])
    def test_rejects_invalid_postcodes(self, postcode):
        assert validate_uk_postcode(postcode) is False


class TestFormatUkPostcode:
    def test_inserts_space_before_inward_code(self):
        assert format_uk_postcode("sw1a1aa") == "SW1A 1AA"
        assert format_uk_postcode("m11ae") == "M1 1AE"

    def test_collapses_extra_whitespace(self):
        assert format_uk_postcode("  SW1A   1AA ") == "SW1A 1AA"

    def test_leaves_odd_lengths_unspaced(self):
        assert format_uk_postcode("abcd") == "ABCD"

    def test_empty_input(self):
        assert format_uk_postcode("") == ""
        assert format_uk_postcode(None) == ""


class TestValidateAddress:
    def test_valid_address(self):
        ok, errors = validate_address("10 Downing Street", "London", "SW1A 2AA")
        assert ok is True
        assert errors == []

    def test_missing_fields(self):
        ok, errors = validate_address("", " ", None)
        assert ok is False
        assert errors == ["Address line 1 is required", "City is required", "Postcode is required"]

    def test_too_short_and_bad_postcode(self):
        ok, errors = validate_address("1A", "L", "NOPE")
        assert ok is False
        assert "Address line 1 must be at least 3 characters" in errors
        assert "City must be at least 2 characters" in errors
        assert "Invalid UK postcode format" in errors


class TestSanitizeInput:
    def test_strips_angle_brackets_and_whitespace(self):
        assert sanitize_input("  <b>Flat 2</b> ") == "bFlat 2/b"

    def test_caps_length(self):
        assert len(sanitize_input("x" * 500)) == 200

    def test_non_strings(self):
        assert sanitize_input(None) == ""
        assert sanitize_input(42) == ""
