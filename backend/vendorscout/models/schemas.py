from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _RequestModel(BaseModel):
    # Accept both snake_case and the camelCase the web client sends.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Requests ---


class VendorResearchRequest(_RequestModel):
    project_id: str
    location: str
    zip_code: str = ""
    category_id: str | None = None
    category_name: str | None = None
    specialization: str | None = None
    custom_context: str | None = None
    phase: str | None = None
    stream: bool = False

    @model_validator(mode="after")
    def _require_category(self) -> "VendorResearchRequest":
        if not (self.category_id or (self.category_name and self.category_name.strip())):
            raise ValueError("category_id or category_name is required")
        return self


class DeduplicateRequest(_RequestModel):
    project_id: str
    category_id: str
    dry_run: bool = True


# --- Responses ---


class VendorResearchResponse(BaseModel):
    success: bool = True
    vendors: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0
    staging_id: str | None = None
    found: int = 0
    duplicates_skipped: int = 0
    message: str = ""


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class DuplicateInfo(BaseModel):
    id: str
    business_name: str
    reason: str
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    notes: str | None = None


class DeduplicateResponse(BaseModel):
    success: bool = True
    dry_run: bool
    duplicates_found: int = 0
    builders_found: int = 0
    total_to_remove: int = 0
    total_removed: int | None = None
    duplicates: list[DuplicateInfo] = Field(default_factory=list)
    builders: list[DuplicateInfo] = Field(default_factory=list)
    message: str = ""


class StagingRecordResponse(BaseModel):
    records: list[dict[str, Any]]


class VendorListResponse(BaseModel):
    vendors: list[dict[str, Any]]
    count: int
