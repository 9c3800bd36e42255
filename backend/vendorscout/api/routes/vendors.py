from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from vendorscout.api.deps import get_cleanup_service, get_store
from vendorscout.models.schemas import DeduplicateRequest, DeduplicateResponse, VendorListResponse
from vendorscout.services.cleanup import VendorCleanupService
from vendorscout.services.supabase import VENDOR_ORDERINGS, VendorStore

router = APIRouter(prefix="/api/vendors", tags=["vendors"])


@router.get("", response_model=VendorListResponse)
async def list_vendors(
    project_id: str = Query(...),
    category_id: str | None = Query(None),
    order_by: str = Query("created_at"),
    store: VendorStore = Depends(get_store),
):
    if order_by not in VENDOR_ORDERINGS:
        raise HTTPException(status_code=422, detail=f"Unsupported ordering: {order_by}")
    vendors = await store.list_vendors(project_id, category_id, order_by=order_by)
    return VendorListResponse(
        vendors=[v.model_dump(mode="json") for v in vendors],
        count=len(vendors),
    )


@router.post("/deduplicate", response_model=DeduplicateResponse)
async def deduplicate_vendors(
    body: DeduplicateRequest,
    service: VendorCleanupService = Depends(get_cleanup_service),
):
    """Find (and unless ``dry_run``, delete) duplicate vendors in a scope."""
    return await service.analyze(body.project_id, body.category_id, dry_run=body.dry_run)
