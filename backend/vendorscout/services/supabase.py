from __future__ import annotations

import asyncio
import re
from datetime import datetime
from enum import Enum
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from vendorscout.config import Settings, settings
from vendorscout.models.vendors import ProcessingStatus, StagingRecord, Vendor, VendorCategory
from vendorscout.services import logger as log_service
from vendorscout.services.errors import ConfigurationError, InsertFailedError, StoreError

VENDOR_ORDERINGS = {
    "created_at": False,
    "rating": True,
}

# Model field -> vendor_research_staging column.
STAGING_COLUMNS = {
    "raw_research_data": "raw_firecrawl_data",
}


def create_supabase_client(config: Settings = settings) -> Client:
    missing = [
        name
        for name, value in (
            ("SUPABASE_URL", config.supabase_url),
            ("SUPABASE_SERVICE_ROLE_KEY", config.supabase_service_role_key),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(missing)
    return create_client(config.supabase_url, config.supabase_service_role_key)


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


def _staging_row(fields: dict[str, Any]) -> dict[str, Any]:
    return {STAGING_COLUMNS.get(k, k): v for k, v in _serialize(fields).items()}


def category_slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


class VendorStore:
    """Row access for vendors, vendor_categories and vendor_research_staging.

    The supabase client is synchronous; every ``execute()`` runs in a worker
    thread so the event loop is never blocked.
    """

    def __init__(self, client: Client):
        self.client = client

    async def _execute(
        self,
        operation: str,
        table: str,
        query: Any,
        *,
        error_cls: type[StoreError] = StoreError,
    ) -> list[dict[str, Any]]:
        try:
            result = await asyncio.to_thread(query.execute)
        except (APIError, httpx.HTTPError) as e:
            message = getattr(e, "message", None) or str(e)
            log_service.log_db_operation(operation, table, "error", error=message)
            raise error_cls(operation, table, message) from e
        rows = result.data or []
        log_service.log_db_operation(operation, table, "success", details=f"{len(rows)} rows")
        return rows

    # --- Categories ---

    async def find_category(self, name: str, phase: str) -> VendorCategory | None:
        query = (
            self.client.table("vendor_categories")
            .select("*")
            .eq("name", name)
            .eq("phase", phase)
            .limit(1)
        )
        rows = await self._execute("select", "vendor_categories", query)
        return VendorCategory.model_validate(rows[0]) if rows else None

    async def get_category(self, category_id: str) -> VendorCategory | None:
        query = self.client.table("vendor_categories").select("*").eq("id", category_id).limit(1)
        rows = await self._execute("select", "vendor_categories", query)
        return VendorCategory.model_validate(rows[0]) if rows else None

    async def create_category(
        self,
        name: str,
        phase: str,
        *,
        description: str | None = None,
        typical_cost: str | None = None,
    ) -> VendorCategory:
        row: dict[str, Any] = {
            "name": name,
            "category": category_slug(name),
            "phase": phase,
            "description": description,
        }
        if typical_cost:
            row["typical_cost"] = typical_cost
        rows = await self._execute(
            "insert", "vendor_categories", self.client.table("vendor_categories").insert(row)
        )
        if not rows:
            raise StoreError("insert", "vendor_categories", "no row returned")
        return VendorCategory.model_validate(rows[0])

    # --- Staging records ---

    async def create_staging_record(
        self,
        *,
        project_id: str,
        category_name: str | None,
        search_query: str,
        raw_research_data: dict[str, Any] | None = None,
    ) -> StagingRecord:
        row = {
            "project_id": project_id,
            "category_name": category_name,
            "search_query": search_query,
            "raw_firecrawl_data": raw_research_data or {},
            "processing_status": ProcessingStatus.STARTING.value,
        }
        rows = await self._execute(
            "insert",
            "vendor_research_staging",
            self.client.table("vendor_research_staging").insert(row),
        )
        if not rows:
            raise StoreError("insert", "vendor_research_staging", "no row returned")
        return StagingRecord.model_validate(rows[0])

    async def update_staging_record(self, staging_id: str, **fields: Any) -> None:
        query = (
            self.client.table("vendor_research_staging")
            .update(_staging_row(fields))
            .eq("id", staging_id)
        )
        await self._execute("update", "vendor_research_staging", query)

    async def list_staging_records(self, project_id: str, *, limit: int = 20) -> list[StagingRecord]:
        query = (
            self.client.table("vendor_research_staging")
            .select("*")
            .eq("project_id", project_id)
            .order("created_at", desc=True)
            .limit(limit)
        )
        rows = await self._execute("select", "vendor_research_staging", query)
        return [StagingRecord.model_validate(r) for r in rows]

    # --- Vendors ---

    async def list_vendors(
        self,
        project_id: str,
        category_id: str | None = None,
        *,
        order_by: str = "created_at",
    ) -> list[Vendor]:
        if order_by not in VENDOR_ORDERINGS:
            raise ValueError(f"Unsupported vendor ordering: {order_by}")
        query = self.client.table("vendors").select("*").eq("project_id", project_id)
        if category_id:
            query = query.eq("category_id", category_id)
        query = query.order(order_by, desc=VENDOR_ORDERINGS[order_by])
        rows = await self._execute("select", "vendors", query)
        return [Vendor.model_validate(r) for r in rows]

    async def insert_vendors(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not rows:
            return []
        return await self._execute(
            "insert",
            "vendors",
            self.client.table("vendors").insert(_serialize(rows)),
            error_cls=InsertFailedError,
        )

    async def delete_vendors(self, vendor_ids: list[str]) -> int:
        if not vendor_ids:
            return 0
        query = self.client.table("vendors").delete().in_("id", vendor_ids)
        await self._execute("delete", "vendors", query)
        return len(vendor_ids)
