"""Comparison keys for vendor fields.

Keys are only ever compared for equality; they are never written back to a
vendor row. Every function accepts ``None`` and returns an empty key for it.
"""
from __future__ import annotations

import re

BUSINESS_SUFFIXES = ("inc", "llc", "corp", "ltd", "company", "co", "pllc")
STREET_WORDS = (
    "street",
    "st",
    "avenue",
    "ave",
    "road",
    "rd",
    "lane",
    "ln",
    "drive",
    "dr",
    "boulevard",
    "blvd",
)

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"[^0-9]")
_SUFFIX_RE = re.compile(r"\b(?:" + "|".join(BUSINESS_SUFFIXES) + r")\b")
_STREET_RE = re.compile(r"\b(?:" + "|".join(STREET_WORDS) + r")\b")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_business_name(name: str | None) -> str:
    if not name:
        return ""
    key = _PUNCTUATION_RE.sub("", name.lower())
    key = _SUFFIX_RE.sub("", key)
    return _collapse(key)


def normalize_phone(phone: str | None) -> str:
    if not phone:
        return ""
    return _NON_DIGIT_RE.sub("", phone)


def normalize_address(address: str | None) -> str:
    if not address:
        return ""
    key = _STREET_RE.sub("", address.lower())
    key = _PUNCTUATION_RE.sub("", key)
    return _collapse(key)


def normalize_email(email: str | None) -> str:
    if not email:
        return ""
    return email.lower()
