from __future__ import annotations

from functools import lru_cache

from supabase import Client

from vendorscout.agents.orchestrator import VendorResearchOrchestrator
from vendorscout.config import settings
from vendorscout.services.cleanup import VendorCleanupService
from vendorscout.services.supabase import VendorStore, create_supabase_client


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    return create_supabase_client(settings)


def get_store() -> VendorStore:
    return VendorStore(get_supabase_client())


def get_orchestrator() -> VendorResearchOrchestrator:
    """Fresh orchestrator per request; raises ConfigurationError when
    credentials are missing, before anything is written."""
    return VendorResearchOrchestrator.from_settings(settings)


def get_cleanup_service() -> VendorCleanupService:
    return VendorCleanupService(get_store())
