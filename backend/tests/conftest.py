"""Shared fakes for the research pipeline tests."""
from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from vendorscout.agents.orchestrator import VendorResearchOrchestrator
from vendorscout.models.vendors import ProcessingStatus, StagingRecord, Vendor, VendorCategory
from vendorscout.services.errors import InsertFailedError
from vendorscout.services.extractor import HeuristicExtractionStrategy, RecordExtractor
from vendorscout.services.supabase import VENDOR_ORDERINGS, category_slug
from vendorscout.tools.results import ResearchQuery, ResearchResult

# Two distinct firms plus a near-duplicate of the first (same phone, slightly
# different name).
ARCHITECT_RESEARCH = """Here are well-reviewed architecture firms in Austin, TX:

1. **Smith Design Studio**
Phone: (512) 555-1234
Email: hello@smithdesign.com
Website: https://smithdesign.com
Rating: 4.8 (120 reviews)
Cost: $5,000 - $15,000

2. **Hill Country Architects**
Phone: 512-555-9876
Address: 4500 Riverside Drive, Austin, TX 78741
Rating: 4.5

3. **Smith Design Studios**
Phone: 512.555.1234
Residential and commercial design services.
"""

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


class InMemoryVendorStore:
    """Dict-backed stand-in for VendorStore."""

    def __init__(
        self,
        *,
        categories: list[VendorCategory] | None = None,
        vendors: list[Vendor] | None = None,
        fail_insert: bool = False,
    ):
        self.categories = {c.id: c for c in categories or []}
        self.vendors = list(vendors or [])
        self.staging: dict[str, dict[str, Any]] = {}
        self.status_history: dict[str, list[str]] = {}
        self.deleted: list[str] = []
        self.fail_insert = fail_insert
        self._ids = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    async def find_category(self, name: str, phase: str) -> VendorCategory | None:
        for category in self.categories.values():
            if category.name == name and category.phase == phase:
                return category
        return None

    async def get_category(self, category_id: str) -> VendorCategory | None:
        return self.categories.get(category_id)

    async def create_category(self, name, phase, *, description=None, typical_cost=None):
        category = VendorCategory(
            id=self._next_id("category"),
            name=name,
            category=category_slug(name),
            phase=phase,
            description=description,
            typical_cost=typical_cost,
        )
        self.categories[category.id] = category
        return category

    async def create_staging_record(
        self, *, project_id, category_name, search_query, raw_research_data=None
    ) -> StagingRecord:
        staging_id = self._next_id("staging")
        self.staging[staging_id] = {
            "id": staging_id,
            "project_id": project_id,
            "category_name": category_name,
            "search_query": search_query,
            "raw_research_data": raw_research_data or {},
            "processing_status": ProcessingStatus.STARTING,
        }
        self.status_history[staging_id] = [ProcessingStatus.STARTING.value]
        return StagingRecord.model_validate(self.staging[staging_id])

    async def update_staging_record(self, staging_id: str, **fields: Any) -> None:
        self.staging[staging_id].update(fields)
        if "processing_status" in fields:
            self.status_history[staging_id].append(ProcessingStatus(fields["processing_status"]).value)

    async def list_staging_records(self, project_id: str, *, limit: int = 20) -> list[StagingRecord]:
        rows = [r for r in self.staging.values() if r["project_id"] == project_id]
        return [StagingRecord.model_validate(r) for r in reversed(rows)][:limit]

    async def list_vendors(self, project_id, category_id=None, *, order_by="created_at"):
        if order_by not in VENDOR_ORDERINGS:
            raise ValueError(f"Unsupported vendor ordering: {order_by}")
        vendors = [
            v
            for v in self.vendors
            if v.project_id == project_id and (category_id is None or v.category_id == category_id)
        ]
        return sorted(
            vendors,
            key=lambda v: getattr(v, order_by) or 0,
            reverse=VENDOR_ORDERINGS[order_by],
        )

    async def insert_vendors(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if self.fail_insert:
            raise InsertFailedError("insert", "vendors", "violates row-level security policy")
        inserted = []
        for row in rows:
            vendor = Vendor(
                id=self._next_id("vendor"),
                created_at=BASE_TIME + timedelta(minutes=len(self.vendors)),
                **row,
            )
            self.vendors.append(vendor)
            inserted.append(vendor.model_dump(mode="json"))
        return inserted

    async def delete_vendors(self, vendor_ids: list[str]) -> int:
        self.deleted.extend(vendor_ids)
        self.vendors = [v for v in self.vendors if v.id not in vendor_ids]
        return len(vendor_ids)


class FakeResearch:
    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.queries: list[ResearchQuery] = []

    async def research(self, query: ResearchQuery) -> ResearchResult:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return ResearchResult(text=self.text, provider="fake")


def make_vendor(vendor_id: str, business_name: str, minutes: int = 0, **fields: Any) -> Vendor:
    fields.setdefault("project_id", "project-1")
    fields.setdefault("category_id", "category-arch")
    return Vendor(
        id=vendor_id,
        business_name=business_name,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        **fields,
    )


@pytest.fixture
def store():
    return InMemoryVendorStore()


@pytest.fixture
def make_orchestrator():
    def factory(store: InMemoryVendorStore, research: FakeResearch) -> VendorResearchOrchestrator:
        return VendorResearchOrchestrator(
            store,
            research,
            RecordExtractor([HeuristicExtractionStrategy()]),
            default_phase="Pre-Construction Planning & Design",
        )

    return factory


@pytest.fixture
def make_store():
    return InMemoryVendorStore


@pytest.fixture
def make_research():
    return FakeResearch


@pytest.fixture
def vendor():
    return make_vendor


@pytest.fixture
def architect_research():
    return ARCHITECT_RESEARCH
