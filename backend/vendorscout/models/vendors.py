from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VendorSource(str, Enum):
    AI_GENERATED = "ai_generated"
    USER_ENTERED = "user_entered"


class VendorStatus(str, Enum):
    RESEARCHED = "researched"
    CONTACTED = "contacted"
    QUOTED = "quoted"
    SELECTED = "selected"
    REJECTED = "rejected"


class ProcessingStatus(str, Enum):
    STARTING = "starting"
    RESEARCH_COMPLETE = "research_complete"
    VENDORS_EXTRACTED = "vendors_extracted"
    NO_VENDORS_EXTRACTED = "no_vendors_extracted"
    COMPLETED = "completed"
    INSERT_FAILED = "insert_failed"
    FAILED = "failed"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class VendorCandidate(BaseModel):
    """A vendor pulled out of research text, not yet persisted."""

    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    business_name: str
    contact_name: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    rating: float | None = None
    review_count: int | None = Field(default=None, ge=0)
    cost_estimate_low: float | None = None
    cost_estimate_avg: float | None = None
    cost_estimate_high: float | None = None
    notes: str | None = None
    source: VendorSource = VendorSource.AI_GENERATED

    @field_validator(
        "contact_name",
        "phone",
        "email",
        "website",
        "address",
        "city",
        "state",
        "zip_code",
        "notes",
        mode="before",
    )
    @classmethod
    def _strip_optional_text(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, str):
            value = str(value)
        return _blank_to_none(value)

    @field_validator("business_name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        if value is None:
            return ""
        return str(value).strip()

    def to_vendor_row(self, project_id: str, category_id: str) -> dict[str, Any]:
        """Insert payload for the vendors table."""
        row = self.model_dump(exclude={"source"})
        row.update(
            {
                "project_id": project_id,
                "category_id": category_id,
                "ai_generated": self.source == VendorSource.AI_GENERATED,
                "status": VendorStatus.RESEARCHED.value,
            }
        )
        return row


class Vendor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    project_id: str
    category_id: str
    business_name: str = ""
    contact_name: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    rating: float | None = None
    review_count: int | None = None
    cost_estimate_low: float | None = None
    cost_estimate_avg: float | None = None
    cost_estimate_high: float | None = None
    notes: str | None = None
    status: str | None = VendorStatus.RESEARCHED.value
    ai_generated: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VendorCategory(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    category: str | None = None
    phase: str
    subcategory: str | None = None
    description: str | None = None
    typical_cost: str | None = None
    created_at: datetime | None = None


class StagingRecord(BaseModel):
    """Audit row for one research invocation."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    project_id: str
    category_name: str | None = None
    search_query: str = ""
    # Stored in the legacy raw_firecrawl_data column whatever the provider.
    raw_research_data: dict[str, Any] = Field(default_factory=dict, alias="raw_firecrawl_data")
    extracted_vendors: list[dict[str, Any]] = Field(default_factory=list)
    processing_status: ProcessingStatus = ProcessingStatus.STARTING
    processing_notes: str | None = None
    created_at: datetime | None = None
    processed_at: datetime | None = None
