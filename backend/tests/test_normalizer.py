"""Tests for comparison-key normalization."""
import pytest

from vendorscout.services.normalizer import (
    normalize_address,
    normalize_business_name,
    normalize_email,
    normalize_phone,
)


class TestNormalizeBusinessName:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("ABC Plumbing, LLC", "abc plumbing"),
            ("ABC Plumbing Inc.", "abc plumbing"),
            ("Smith & Co.", "smith"),
            ("  Hill   Country  Architects PLLC ", "hill country architects"),
            ("Lone Star Building Company", "lone star building"),
        ],
    )
    def test_strips_punctuation_and_suffixes(self, raw, expected):
        assert normalize_business_name(raw) == expected

    def test_suffixes_only_removed_as_whole_words(self):
        assert normalize_business_name("Costco Incline Builders") == "costco incline builders"

    @pytest.mark.parametrize("raw", ["ABC Plumbing, LLC", "Smith & Co.", "J.R. Drywall Corp", ""])
    def test_idempotent(self, raw):
        once = normalize_business_name(raw)
        assert normalize_business_name(once) == once

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_name_gives_empty_key(self, raw):
        assert normalize_business_name(raw) == ""


class TestNormalizePhone:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("(512) 555-1234", "5125551234"),
            ("512.555.1234", "5125551234"),
            ("+1 512-555-1234 ext. 9", "151255512349"),
            ("call us", ""),
        ],
    )
    def test_keeps_only_digits(self, raw, expected):
        result = normalize_phone(raw)
        assert result == expected
        assert result == "" or result.isdigit()

    def test_none(self):
        assert normalize_phone(None) == ""


class TestNormalizeAddress:
    def test_drops_street_words_and_punctuation(self):
        assert normalize_address("123 Main Street, Suite 4") == "123 main suite 4"

    def test_abbreviations_match_long_forms(self):
        assert normalize_address("4500 Riverside Dr., Austin") == normalize_address(
            "4500 Riverside Drive Austin"
        )

    def test_none(self):
        assert normalize_address(None) == ""


class TestNormalizeEmail:
    def test_lowercases_only(self):
        assert normalize_email("Info@ABC-Plumbing.com ") == "info@abc-plumbing.com "

    def test_none(self):
        assert normalize_email(None) == ""
