"""Cleanup of vendors already stored in a (project, category) scope."""
from __future__ import annotations

from vendorscout.models.schemas import DeduplicateResponse, DuplicateInfo
from vendorscout.models.vendors import Vendor
from vendorscout.services import logger as log_service
from vendorscout.services.deduplicator import find_duplicates
from vendorscout.services.supabase import VendorStore

BUILDER_REASON = "Builder/contractor in architect category"

BUILDER_KEYWORDS = (
    "builder",
    "building",
    "construction",
    "contractor",
    "homes",
    "custom homes",
    "home builder",
    "residential builder",
    "general contractor",
    "gc ",
    "construction company",
    "construction services",
    "building company",
    "home construction",
)

# Any of these marks the vendor as an architect, whatever else matches.
ARCHITECT_KEYWORDS = (
    "architect",
    "architectural",
    "design",
    "aia",
    "licensed architect",
    "registered architect",
    "architectural firm",
    "architecture",
    "architectural design",
    "architectural services",
)


def is_builder_not_architect(business_name: str | None, notes: str | None) -> bool:
    combined = f"{business_name or ''} {notes or ''}".lower()
    if any(keyword in combined for keyword in ARCHITECT_KEYWORDS):
        return False
    return any(keyword in combined for keyword in BUILDER_KEYWORDS)


def _info(vendor: Vendor, reason: str, *, with_notes: bool = False) -> DuplicateInfo:
    return DuplicateInfo(
        id=vendor.id,
        business_name=vendor.business_name,
        reason=reason,
        phone=vendor.phone,
        email=vendor.email,
        address=vendor.address,
        notes=vendor.notes if with_notes else None,
    )


class VendorCleanupService:
    def __init__(self, store: VendorStore):
        self.store = store

    async def analyze(
        self, project_id: str, category_id: str, dry_run: bool = True
    ) -> DeduplicateResponse:
        """Flag duplicates (keeping the oldest) and misfiled builders.

        With ``dry_run`` false the flagged vendors are deleted.
        """
        vendors = await self.store.list_vendors(project_id, category_id, order_by="created_at")
        log_service.log_event(
            event_type="cleanup_started",
            message=f"Analyzing {len(vendors)} vendors",
            project_id=project_id,
            category_id=category_id,
            dry_run=dry_run,
        )
        if not vendors:
            return DeduplicateResponse(
                dry_run=dry_run,
                total_removed=None if dry_run else 0,
                message="No vendors found to deduplicate",
            )

        duplicates = [_info(m.record, m.reason.label) for m in find_duplicates(vendors)]

        builders: list[DuplicateInfo] = []
        category = await self.store.get_category(category_id)
        if category is not None and "architect" in category.name.lower():
            builders = [
                _info(v, BUILDER_REASON, with_notes=True)
                for v in vendors
                if is_builder_not_architect(v.business_name, v.notes)
            ]

        to_remove = list(dict.fromkeys(info.id for info in duplicates + builders))
        summary = f"({len(duplicates)} duplicates, {len(builders)} builders)"

        if dry_run:
            return DeduplicateResponse(
                dry_run=True,
                duplicates_found=len(duplicates),
                builders_found=len(builders),
                total_to_remove=len(to_remove),
                duplicates=duplicates,
                builders=builders,
                message=f"Found {len(to_remove)} vendors to remove {summary}",
            )

        removed = await self.store.delete_vendors(to_remove)
        log_service.log_event(
            event_type="cleanup_completed",
            message=f"Removed {removed} vendors",
            project_id=project_id,
            category_id=category_id,
        )
        return DeduplicateResponse(
            dry_run=False,
            duplicates_found=len(duplicates),
            builders_found=len(builders),
            total_to_remove=len(to_remove),
            total_removed=removed,
            duplicates=duplicates,
            builders=builders,
            message=f"Successfully removed {removed} vendors {summary}",
        )
