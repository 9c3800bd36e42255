"""Turn unstructured research text into vendor candidates.

Two strategies run in order: a schema-constrained language-model extraction,
then a regex parser over markdown-ish sections. Whatever a strategy returns is
validated; the first strategy that yields at least one valid candidate wins.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import ValidationError

from vendorscout.llm_client import LLMClient
from vendorscout.models.vendors import VendorCandidate
from vendorscout.services import logger as log_service
from vendorscout.services.errors import ExtractionError
from vendorscout.services.prompt_store import render_prompt

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 3
# Known false positive: rejects real names such as "Apex Contractor Services".
PLACEHOLDER_NAME_MARKER = "contractor "
MIN_SECTION_LENGTH = 20
NOTES_MAX_CHARS = 500


class ExtractionStrategy(Protocol):
    name: str

    async def extract(self, text: str) -> list[VendorCandidate]: ...


def is_valid_candidate(candidate: VendorCandidate) -> bool:
    name = (candidate.business_name or "").strip()
    if len(name) < MIN_NAME_LENGTH:
        return False
    return PLACEHOLDER_NAME_MARKER not in name.lower()


def validate_candidates(candidates: Sequence[VendorCandidate]) -> list[VendorCandidate]:
    return [c for c in candidates if is_valid_candidate(c)]


# --- Schema-constrained extraction ---


_NULLABLE_FIELDS: dict[str, str] = {
    "contact_name": "string",
    "phone": "string",
    "email": "string",
    "website": "string",
    "address": "string",
    "city": "string",
    "state": "string",
    "zip_code": "string",
    "rating": "number",
    "review_count": "integer",
    "cost_estimate_low": "number",
    "cost_estimate_avg": "number",
    "cost_estimate_high": "number",
    "notes": "string",
}


def vendor_extraction_schema() -> dict[str, Any]:
    """JSON schema for ``{"vendors": [VendorCandidate, ...]}`` in strict mode."""
    properties: dict[str, Any] = {"business_name": {"type": "string"}}
    for name, json_type in _NULLABLE_FIELDS.items():
        properties[name] = {"type": [json_type, "null"]}
    vendor = {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }
    return {
        "type": "object",
        "properties": {"vendors": {"type": "array", "items": vendor}},
        "required": ["vendors"],
        "additionalProperties": False,
    }


class SchemaExtractionStrategy:
    name = "schema"

    def __init__(self, llm: LLMClient, *, model: str | None = None, max_tokens: int = 3000):
        self.llm = llm
        self.model = model
        self.max_tokens = max_tokens

    async def extract(self, text: str) -> list[VendorCandidate]:
        payload = await self.llm.complete_json(
            system=render_prompt("extraction.system_prompt"),
            user=render_prompt("extraction.user_prompt", research_text=text),
            schema_name="vendor_extraction",
            schema=vendor_extraction_schema(),
            model=self.model,
            max_tokens=self.max_tokens,
            caller="vendor_extractor",
        )
        raw_vendors = payload.get("vendors")
        if not isinstance(raw_vendors, list):
            raise ExtractionError("Extraction payload has no vendors array")

        candidates: list[VendorCandidate] = []
        for item in raw_vendors:
            if not isinstance(item, dict):
                continue
            try:
                candidates.append(VendorCandidate.model_validate(item))
            except ValidationError as e:
                logger.debug("Dropping malformed extracted vendor %r: %s", item.get("business_name"), e)
        return candidates


# --- Heuristic fallback parsing ---


SECTION_BOUNDARY_RE = re.compile(r"\n(?=\d+\.|\*\*|##)")
_SECTION_START_RE = re.compile(r"\s*(?:\d+\.|\*\*|##)")
_FIELD_LABEL_RE = re.compile(
    r"\*\*\s*(?:phone|tel|email|e-mail|website|web|url|address|location|rating|reviews?"
    r"|cost|price|pricing|contact|notes?|services?|licen[sc]e|specialt(?:y|ies)|hours)\b",
    re.IGNORECASE,
)
_LEADING_MARKERS_RE = re.compile(r"^\s*(?:#{1,6}\s*)?(?:[-*•]\s+)?(?:\d+[.)]\s*)?")
_BOLD_RE = re.compile(r"\*\*([^*\n]+?)\*\*")
_NAME_TERMINATOR_RE = re.compile(r"\s+[-–—|]\s+|:")
_LABELED_PHONE_RE = re.compile(r"(?:phone|tel|call)[ \t:*]*([+]?[\d \t\-().]{10,})", re.IGNORECASE)
_PHONE_RE = re.compile(r"(?:\+?1[ \t.-]?)?\(?\d{3}\)?[ \t.-]?\d{3}[ \t.-]?\d{4}\b")
_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_ADDRESS_RE = re.compile(r"(?:address|location)[\s:*]*([^\n]+)", re.IGNORECASE)
_RATING_RE = re.compile(r"(?:rating|stars?)[\s:*]*(\d+(?:\.\d+)?)", re.IGNORECASE)
_REVIEWS_RE = re.compile(r"(\d[\d,]*)\s*reviews?\b", re.IGNORECASE)
_COST_RE = re.compile(
    r"\$\s?(\d[\d,]*(?:\.\d+)?)\s*(k)?\s*(?:-|–|to)\s*\$\s?(\d[\d,]*(?:\.\d+)?)\s*(k)?",
    re.IGNORECASE,
)
_URL_RE = re.compile(r"https?://[^\s)\]>*,\"']+")


def split_sections(text: str) -> list[str]:
    """Split research text at numbered-list, bold and heading markers.

    Text before the first marker is an introduction and is dropped. A bold
    field label such as ``**Phone:**`` at the start of a line stays with the
    section above it.
    """
    if not text:
        return []
    parts = SECTION_BOUNDARY_RE.split(text)
    if len(parts) > 1 and not _SECTION_START_RE.match(parts[0]):
        parts = parts[1:]

    sections: list[str] = []
    for part in parts:
        if sections and _FIELD_LABEL_RE.match(part):
            sections[-1] = f"{sections[-1]}\n{part}"
        else:
            sections.append(part)
    return [section for section in sections if section.strip()]


def _clean_label(value: str) -> str:
    return value.strip().strip("*#").strip(" .,;:-–—").strip()


def _extract_name(section: str) -> str | None:
    for line in section.splitlines():
        if line.strip():
            first_line = line
            break
    else:
        return None

    bold = _BOLD_RE.search(first_line)
    if bold:
        name = _clean_label(bold.group(1))
        return name or None

    label = _LEADING_MARKERS_RE.sub("", first_line, count=1)
    label = _NAME_TERMINATOR_RE.split(label, maxsplit=1)[0]
    name = _clean_label(label)
    return name or None


def _extract_phone(section: str) -> str | None:
    labeled = _LABELED_PHONE_RE.search(section)
    if labeled:
        digits = re.sub(r"[^0-9]", "", labeled.group(1))
        if len(digits) >= 10:
            return digits
    match = _PHONE_RE.search(section)
    if match:
        return re.sub(r"[^0-9]", "", match.group(0))
    return None


def _extract_rating(section: str) -> float | None:
    match = _RATING_RE.search(section)
    if not match:
        return None
    rating = float(match.group(1))
    if 1 <= rating <= 5:
        return rating
    return None


def _extract_review_count(section: str) -> int | None:
    match = _REVIEWS_RE.search(section)
    if not match:
        return None
    return int(match.group(1).replace(",", ""))


def _money(amount: str, thousands: str | None) -> float:
    value = float(amount.replace(",", ""))
    return value * 1000 if thousands else value


def _extract_cost_range(section: str) -> tuple[float, float, float] | None:
    match = _COST_RE.search(section)
    if not match:
        return None
    low = _money(match.group(1), match.group(2))
    high = _money(match.group(3), match.group(4))
    return low, (low + high) / 2, high


def _extract_website(section: str) -> str | None:
    match = _URL_RE.search(section)
    if not match:
        return None
    return match.group(0).rstrip(".")


def parse_section(section: str) -> VendorCandidate | None:
    """Build a candidate from one section of research text.

    Returns ``None`` when the section is too short, does not open with a
    list, bold or heading marker, or has no business name.
    """
    stripped = section.strip()
    if len(stripped) < MIN_SECTION_LENGTH or not _SECTION_START_RE.match(stripped):
        return None

    name = _extract_name(stripped)
    if not name:
        return None

    fields: dict[str, Any] = {
        "business_name": name,
        "phone": _extract_phone(stripped),
        "rating": _extract_rating(stripped),
        "review_count": _extract_review_count(stripped),
        "website": _extract_website(stripped),
        "notes": stripped[:NOTES_MAX_CHARS],
    }

    email = _EMAIL_RE.search(stripped)
    if email:
        fields["email"] = email.group(0)

    address = _ADDRESS_RE.search(stripped)
    if address:
        fields["address"] = _clean_label(address.group(1))

    cost = _extract_cost_range(stripped)
    if cost:
        fields["cost_estimate_low"], fields["cost_estimate_avg"], fields["cost_estimate_high"] = cost

    return VendorCandidate(**fields)


def parse_sections(sections: Sequence[str]) -> list[VendorCandidate]:
    candidates = []
    for section in sections:
        candidate = parse_section(section)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


class HeuristicExtractionStrategy:
    name = "heuristic"

    async def extract(self, text: str) -> list[VendorCandidate]:
        return parse_sections(split_sections(text))


# --- Strategy chain ---


@dataclass
class ExtractionOutcome:
    candidates: list[VendorCandidate] = field(default_factory=list)
    strategy: str | None = None
    attempts: list[str] = field(default_factory=list)


class RecordExtractor:
    def __init__(self, strategies: Sequence[ExtractionStrategy]):
        if not strategies:
            raise ValueError("RecordExtractor needs at least one strategy")
        self.strategies = list(strategies)

    @classmethod
    def default(
        cls,
        llm: LLMClient | None,
        *,
        model: str | None = None,
        max_tokens: int = 3000,
    ) -> "RecordExtractor":
        strategies: list[ExtractionStrategy] = []
        if llm is not None:
            strategies.append(SchemaExtractionStrategy(llm, model=model, max_tokens=max_tokens))
        strategies.append(HeuristicExtractionStrategy())
        return cls(strategies)

    async def extract(self, text: str) -> ExtractionOutcome:
        outcome = ExtractionOutcome()
        if not text or not text.strip():
            return outcome

        for strategy in self.strategies:
            outcome.attempts.append(strategy.name)
            try:
                raw = await strategy.extract(text)
            except Exception as e:
                logger.warning("%s extraction failed, trying next strategy: %s", strategy.name, e)
                log_service.log_extraction(strategy.name, 0, 0, error=str(e))
                continue

            valid = validate_candidates(raw)
            log_service.log_extraction(strategy.name, len(raw), len(valid))
            if valid:
                outcome.candidates = valid
                outcome.strategy = strategy.name
                return outcome

        return outcome
