"""Tests for VendorStore against a fake supabase query builder."""
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from vendorscout.config import Settings
from vendorscout.models.vendors import ProcessingStatus, StagingRecord
from vendorscout.services.errors import ConfigurationError, InsertFailedError, StoreError
from vendorscout.services.supabase import VendorStore, category_slug, create_supabase_client


class FakeQuery:
    """Records builder calls; ``execute`` returns canned rows or raises."""

    def __init__(self, data=None, error=None):
        self.data = data if data is not None else []
        self.error = error
        self.calls = []

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def execute(self):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=self.data)


def _store(query):
    client = MagicMock()
    client.table.return_value = query
    return VendorStore(client), client


VENDOR_ROW = {
    "id": "v1",
    "project_id": "p1",
    "category_id": "c1",
    "business_name": "ABC Plumbing",
    "phone": "5125551234",
    "rating": 4.7,
    "created_at": "2026-01-01T00:00:00+00:00",
}


def test_create_client_requires_credentials():
    with pytest.raises(ConfigurationError) as exc_info:
        create_supabase_client(Settings(supabase_url="https://x.supabase.co", supabase_service_role_key=""))
    assert exc_info.value.missing == ["SUPABASE_SERVICE_ROLE_KEY"]


def test_category_slug():
    assert category_slug("General Contractors & Builders") == "general_contractors_builders"


@pytest.mark.asyncio
async def test_list_vendors_filters_scope_and_orders():
    query = FakeQuery([VENDOR_ROW])
    store, client = _store(query)

    vendors = await store.list_vendors("p1", "c1")

    client.table.assert_called_with("vendors")
    assert ("eq", ("project_id", "p1"), {}) in query.calls
    assert ("eq", ("category_id", "c1"), {}) in query.calls
    assert ("order", ("created_at",), {"desc": False}) in query.calls
    assert vendors[0].business_name == "ABC Plumbing"
    assert vendors[0].created_at == datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_list_vendors_by_rating_is_descending():
    query = FakeQuery([])
    store, _ = _store(query)

    await store.list_vendors("p1", order_by="rating")

    assert ("order", ("rating",), {"desc": True}) in query.calls
    assert not any(call[0] == "eq" and call[1][0] == "category_id" for call in query.calls)


@pytest.mark.asyncio
async def test_list_vendors_rejects_unknown_ordering():
    store, _ = _store(FakeQuery())
    with pytest.raises(ValueError):
        await store.list_vendors("p1", order_by="business_name")


@pytest.mark.asyncio
async def test_insert_failure_raises_insert_failed():
    error = APIError({"message": "new row violates row-level security policy", "code": "42501"})
    store, _ = _store(FakeQuery(error=error))

    with pytest.raises(InsertFailedError) as exc_info:
        await store.insert_vendors([{"business_name": "ABC Plumbing"}])

    assert exc_info.value.table == "vendors"
    assert "row-level security" in str(exc_info.value)


@pytest.mark.asyncio
async def test_insert_nothing_skips_the_call():
    store, client = _store(FakeQuery())
    assert await store.insert_vendors([]) == []
    client.table.assert_not_called()


@pytest.mark.asyncio
async def test_read_failure_raises_store_error():
    store, _ = _store(FakeQuery(error=APIError({"message": "relation does not exist"})))
    with pytest.raises(StoreError) as exc_info:
        await store.get_category("c1")
    assert not isinstance(exc_info.value, InsertFailedError)


@pytest.mark.asyncio
async def test_create_staging_record_starts_in_starting_state():
    row = {
        "id": "s1",
        "project_id": "p1",
        "category_name": "Plumbers",
        "search_query": "Find plumbers",
        "processing_status": "starting",
    }
    query = FakeQuery([row])
    store, _ = _store(query)

    record = await store.create_staging_record(
        project_id="p1", category_name="Plumbers", search_query="Find plumbers"
    )

    inserted = query.calls[0][1][0]
    assert inserted["processing_status"] == "starting"
    assert inserted["raw_firecrawl_data"] == {}
    assert "raw_research_data" not in inserted
    assert record.processing_status == ProcessingStatus.STARTING


@pytest.mark.asyncio
async def test_update_staging_record_serializes_values():
    query = FakeQuery([{"id": "s1"}])
    store, _ = _store(query)
    processed_at = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    await store.update_staging_record(
        "s1",
        processing_status=ProcessingStatus.COMPLETED,
        processed_at=processed_at,
        extracted_vendors=[{"status": ProcessingStatus.STARTING}],
    )

    assert query.calls[0] == (
        "update",
        (
            {
                "processing_status": "completed",
                "processed_at": "2026-03-01T12:00:00+00:00",
                "extracted_vendors": [{"status": "starting"}],
            },
        ),
        {},
    )
    assert ("eq", ("id", "s1"), {}) in query.calls


@pytest.mark.asyncio
async def test_create_category_inserts_slug():
    row = {"id": "c1", "name": "Roofers", "category": "roofers", "phase": "Construction"}
    query = FakeQuery([row])
    store, _ = _store(query)

    category = await store.create_category("Roofers", "Construction", description="Roof work")

    assert query.calls[0][1][0] == {
        "name": "Roofers",
        "category": "roofers",
        "phase": "Construction",
        "description": "Roof work",
    }
    assert category.id == "c1"


@pytest.mark.asyncio
async def test_delete_vendors_returns_count():
    query = FakeQuery([])
    store, _ = _store(query)

    assert await store.delete_vendors(["v1", "v2"]) == 2
    assert ("in_", ("id", ["v1", "v2"]), {}) in query.calls
    assert await store.delete_vendors([]) == 0


@pytest.mark.asyncio
async def test_research_payload_uses_raw_firecrawl_data_column():
    query = FakeQuery([{"id": "s1"}])
    store, _ = _store(query)

    await store.update_staging_record(
        "s1",
        processing_status=ProcessingStatus.RESEARCH_COMPLETE,
        raw_research_data={"provider": "perplexity", "text": "..."},
    )

    payload = query.calls[0][1][0]
    assert payload["raw_firecrawl_data"] == {"provider": "perplexity", "text": "..."}
    assert "raw_research_data" not in payload


def test_staging_record_reads_raw_firecrawl_data_column():
    record = StagingRecord.model_validate(
        {"id": "s1", "project_id": "p1", "raw_firecrawl_data": {"initial": "Starting vendor research..."}}
    )
    assert record.raw_research_data == {"initial": "Starting vendor research..."}
