"""Duplicate detection within a (project, category) scope.

A record is a duplicate of another when ANY of the normalized name, phone,
email or address keys are equal. Empty keys never match, phone keys need at
least ``MIN_PHONE_DIGITS`` digits and address keys need at least
``MIN_ADDRESS_LENGTH`` characters. The first matching rule wins; there is no
scoring.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from vendorscout.services.normalizer import (
    normalize_address,
    normalize_business_name,
    normalize_email,
    normalize_phone,
)

logger = logging.getLogger(__name__)

MIN_PHONE_DIGITS = 10
MIN_ADDRESS_LENGTH = 11

T = TypeVar("T")


class MatchReason(str, Enum):
    NAME = "name"
    PHONE = "phone"
    EMAIL = "email"
    ADDRESS = "address"

    @property
    def label(self) -> str:
        return {
            MatchReason.NAME: "Same business name",
            MatchReason.PHONE: "Same phone number",
            MatchReason.EMAIL: "Same email",
            MatchReason.ADDRESS: "Same address",
        }[self]


@dataclass(frozen=True)
class ComparisonKeys:
    name: str
    phone: str
    email: str
    address: str

    @classmethod
    def from_record(cls, record: Any) -> "ComparisonKeys":
        return cls(
            name=normalize_business_name(_field(record, "business_name")),
            phone=normalize_phone(_field(record, "phone")),
            email=normalize_email(_field(record, "email")),
            address=normalize_address(_field(record, "address")),
        )


@dataclass(frozen=True)
class DuplicateMatch:
    record: Any
    matched: Any
    reason: MatchReason


def _field(record: Any, name: str) -> str | None:
    if isinstance(record, Mapping):
        value = record.get(name)
    else:
        value = getattr(record, name, None)
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def match_reason(left: ComparisonKeys, right: ComparisonKeys) -> MatchReason | None:
    """Return the first rule under which two records collide, if any."""
    if left.name and right.name and left.name == right.name:
        return MatchReason.NAME
    if (
        len(left.phone) >= MIN_PHONE_DIGITS
        and len(right.phone) >= MIN_PHONE_DIGITS
        and left.phone == right.phone
    ):
        return MatchReason.PHONE
    if left.email and right.email and left.email == right.email:
        return MatchReason.EMAIL
    if (
        len(left.address) >= MIN_ADDRESS_LENGTH
        and len(right.address) >= MIN_ADDRESS_LENGTH
        and left.address == right.address
    ):
        return MatchReason.ADDRESS
    return None


def partition(
    candidates: Sequence[T], existing: Iterable[Any]
) -> tuple[list[T], list[DuplicateMatch]]:
    """Split candidates into (kept, dropped) against an existing vendor list.

    Candidates are only compared with ``existing``, never with each other.
    Kept candidates preserve their input order.
    """
    existing_keys = [(record, ComparisonKeys.from_record(record)) for record in existing]
    kept: list[T] = []
    dropped: list[DuplicateMatch] = []

    for candidate in candidates:
        keys = ComparisonKeys.from_record(candidate)
        match: DuplicateMatch | None = None
        for record, other in existing_keys:
            reason = match_reason(keys, other)
            if reason is not None:
                match = DuplicateMatch(record=candidate, matched=record, reason=reason)
                break

        if match is None:
            kept.append(candidate)
            continue

        logger.debug(
            "Skipping duplicate vendor %s (matched on %s)",
            _field(candidate, "business_name"),
            match.reason.value,
        )
        dropped.append(match)

    return kept, dropped


def deduplicate(candidates: Sequence[T], existing: Iterable[Any]) -> list[T]:
    kept, _ = partition(candidates, existing)
    return kept


def find_duplicates(records: Sequence[Any]) -> list[DuplicateMatch]:
    """Flag later records that duplicate an earlier one in the same list.

    Record ``i`` is compared against records ``0..i-1`` only, so the earliest
    record of each duplicate group survives. Callers pass records ordered by
    creation time to keep the oldest.
    """
    seen: list[tuple[Any, ComparisonKeys]] = []
    duplicates: list[DuplicateMatch] = []

    for record in records:
        keys = ComparisonKeys.from_record(record)
        for earlier, earlier_keys in seen:
            reason = match_reason(keys, earlier_keys)
            if reason is not None:
                duplicates.append(DuplicateMatch(record=record, matched=earlier, reason=reason))
                break
        seen.append((record, keys))

    return duplicates


def unique(records: Sequence[T]) -> list[T]:
    """Drop every record ``find_duplicates`` flags, keeping input order."""
    flagged = {id(match.record) for match in find_duplicates(records)}
    return [record for record in records if id(record) not in flagged]
