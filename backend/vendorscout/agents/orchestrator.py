from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncGenerator

from vendorscout.agents.research_query import (
    build_research_query,
    city_from_location,
    state_from_location,
)
from vendorscout.config import Settings, settings
from vendorscout.llm_client import LLMClient
from vendorscout.models.events import ProgressEvent, Stage
from vendorscout.models.schemas import VendorResearchRequest
from vendorscout.models.vendors import ProcessingStatus, VendorCandidate, VendorCategory
from vendorscout.services import logger as log_service
from vendorscout.services import streaming
from vendorscout.services.deduplicator import deduplicate, unique
from vendorscout.services.errors import (
    ConfigurationError,
    InsertFailedError,
    StoreError,
    VendorScoutError,
)
from vendorscout.services.extractor import RecordExtractor
from vendorscout.services.supabase import VendorStore, create_supabase_client
from vendorscout.tools.research_provider import ResearchProvider

PROGRESS_PERCENT = {
    Stage.INITIALIZING: 0,
    Stage.CATEGORY: 5,
    Stage.RESEARCHING: 20,
    Stage.EXTRACTING: 70,
    Stage.DEDUPLICATING: 80,
    Stage.SAVING: 90,
}


@dataclass
class ResearchOutcome:
    staging_id: str | None
    category_id: str | None
    status: ProcessingStatus | None
    found: int = 0
    duplicates_skipped: int = 0
    vendors: list[dict[str, Any]] = field(default_factory=list)
    message: str = ""

    @property
    def count(self) -> int:
        return len(self.vendors)


@dataclass
class _Invocation:
    """Mutable state of one pipeline run."""

    request: VendorResearchRequest
    category: VendorCategory | None = None
    staging_id: str | None = None
    status: ProcessingStatus | None = None
    percent: int = 0
    error: Exception | None = None
    outcome: ResearchOutcome | None = None


async def resolve_category(
    store: VendorStore, request: VendorResearchRequest, default_phase: str
) -> VendorCategory:
    """Load the requested category, creating it by (name, phase) when absent."""
    if request.category_id:
        category = await store.get_category(request.category_id)
        if category is None:
            raise VendorScoutError(f"Vendor category {request.category_id} not found")
        return category

    name = (request.category_name or "").strip()
    phase = request.phase or default_phase
    existing = await store.find_category(name, phase)
    if existing is not None:
        return existing
    return await store.create_category(
        name,
        phase,
        description=f"Professional {name} services for construction projects",
    )


def apply_location_defaults(
    candidate: VendorCandidate, request: VendorResearchRequest
) -> VendorCandidate:
    return candidate.model_copy(
        update={
            "city": candidate.city or city_from_location(request.location) or None,
            "state": candidate.state or state_from_location(request.location) or None,
            "zip_code": candidate.zip_code or (request.zip_code or "").strip() or None,
        }
    )


class VendorResearchOrchestrator:
    """Runs one vendor research invocation end to end.

    Flow:
      1. Resolve (or create) the vendor category
      2. Create the staging record with the composed query
      3. Query the research capability
      4. Extract candidates (schema first, heuristic fallback)
      5. Drop duplicates within the batch and against the stored scope
      6. Insert the survivors

    Each step updates the staging record's processing status. ``research``
    yields progress events; ``run`` returns the outcome or raises.
    """

    def __init__(
        self,
        store: VendorStore,
        research_provider: ResearchProvider,
        extractor: RecordExtractor,
        *,
        default_phase: str = settings.default_phase,
        llm: LLMClient | None = None,
    ):
        self.store = store
        self.research_provider = research_provider
        self.extractor = extractor
        self.default_phase = default_phase
        self._llm = llm

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "VendorResearchOrchestrator":
        missing = config.missing_research_credentials()
        if missing:
            raise ConfigurationError(missing)

        research_provider = ResearchProvider.from_settings(config)
        store = VendorStore(create_supabase_client(config))
        llm = LLMClient.from_settings(config) if config.openrouter_api_key else None
        return cls(
            store=store,
            research_provider=research_provider,
            extractor=RecordExtractor.default(
                llm,
                model=config.active_extraction_model,
                max_tokens=config.extraction_max_tokens,
            ),
            default_phase=config.default_phase,
            llm=llm,
        )

    async def aclose(self) -> None:
        if self._llm is not None:
            await self._llm.close()

    async def research(self, request: VendorResearchRequest) -> AsyncGenerator[ProgressEvent, None]:
        async for event in self._stages(_Invocation(request)):
            yield event

    async def run(self, request: VendorResearchRequest) -> ResearchOutcome:
        invocation = _Invocation(request)
        async for _ in self._stages(invocation):
            pass
        if invocation.error is not None:
            raise invocation.error
        if invocation.outcome is None:
            raise VendorScoutError("Vendor research ended without a result")
        return invocation.outcome

    def _progress(self, invocation: _Invocation, stage: Stage, message: str) -> ProgressEvent:
        invocation.percent = max(invocation.percent, PROGRESS_PERCENT[stage])
        return streaming.progress(stage, message, invocation.percent)

    async def _transition(
        self, invocation: _Invocation, status: ProcessingStatus, **fields: Any
    ) -> None:
        invocation.status = status
        await self.store.update_staging_record(
            invocation.staging_id, processing_status=status, **fields
        )
        log_service.log_research_stage(
            invocation.staging_id,
            status.value,
            "ok",
            {"notes": fields.get("processing_notes")} if "processing_notes" in fields else None,
        )

    async def _stages(self, invocation: _Invocation) -> AsyncGenerator[ProgressEvent, None]:
        request = invocation.request
        label = (request.category_name or "vendor").strip()
        try:
            yield self._progress(
                invocation,
                Stage.INITIALIZING,
                f"Starting research for {label} in {request.location}...",
            )

            yield self._progress(invocation, Stage.CATEGORY, "Setting up vendor category...")
            category = await resolve_category(self.store, request, self.default_phase)
            invocation.category = category
            category_name = (request.category_name or category.name).strip()
            query = build_research_query(request, category_name)

            staging = await self.store.create_staging_record(
                project_id=request.project_id,
                category_name=category_name,
                search_query=query.prompt,
                raw_research_data={"initial": "Starting vendor research..."},
            )
            invocation.staging_id = staging.id
            invocation.status = ProcessingStatus.STARTING
            log_service.log_research_stage(
                staging.id,
                ProcessingStatus.STARTING.value,
                "ok",
                {"category": category_name, "location": request.location},
            )

            yield self._progress(
                invocation,
                Stage.RESEARCHING,
                f"AI agent researching {category_name} vendors with professional criteria...",
            )
            # Shielded: a disconnecting caller does not abort an issued call.
            result = await asyncio.shield(self.research_provider.research(query))
            await self._transition(
                invocation,
                ProcessingStatus.RESEARCH_COMPLETE,
                raw_research_data=result.to_staging_payload(),
            )

            yield self._progress(
                invocation, Stage.EXTRACTING, "Extracting and validating vendor information..."
            )
            extraction = await asyncio.shield(self.extractor.extract(result.text))
            candidates = [apply_location_defaults(c, request) for c in extraction.candidates]
            notes = f"Extracted {len(candidates)} vendors from research data"
            if extraction.strategy:
                notes += f" ({extraction.strategy} extraction)"
            await self._transition(
                invocation,
                ProcessingStatus.VENDORS_EXTRACTED if candidates else ProcessingStatus.NO_VENDORS_EXTRACTED,
                extracted_vendors=[c.model_dump(mode="json") for c in candidates],
                processing_notes=notes,
                processed_at=datetime.now(timezone.utc),
            )

            inserted: list[dict[str, Any]] = []
            kept: list[VendorCandidate] = []
            if candidates:
                yield self._progress(
                    invocation,
                    Stage.DEDUPLICATING,
                    f"Checking for duplicates among {len(candidates)} vendors...",
                )
                existing = await self.store.list_vendors(request.project_id, category.id)
                kept = deduplicate(unique(candidates), existing)
                skipped = len(candidates) - len(kept)

                yield self._progress(
                    invocation, Stage.SAVING, f"Saving {len(kept)} new vendors..."
                )
                if kept:
                    rows = [c.to_vendor_row(request.project_id, category.id) for c in kept]
                    try:
                        inserted = await self.store.insert_vendors(rows)
                    except InsertFailedError as e:
                        await self._transition(
                            invocation,
                            ProcessingStatus.INSERT_FAILED,
                            processing_notes=f"Failed to insert vendors: {e}",
                        )
                        raise
                    notes = f"Inserted {len(inserted)} new vendors ({skipped} duplicates skipped)"
                else:
                    notes = f"All {len(candidates)} vendors were duplicates, none inserted"
                await self._transition(
                    invocation, ProcessingStatus.COMPLETED, processing_notes=notes
                )

            skipped = len(candidates) - len(kept)
            if candidates:
                message = f"Research complete! Added {len(inserted)} new vendors"
                if skipped:
                    message += f" ({skipped} duplicates skipped)"
                message += "."
            else:
                message = f"Research complete. No vendors found for {category_name} in {request.location}."

            invocation.outcome = ResearchOutcome(
                staging_id=invocation.staging_id,
                category_id=category.id,
                status=invocation.status,
                found=len(candidates),
                duplicates_skipped=skipped,
                vendors=inserted,
                message=message,
            )
            yield streaming.complete(
                message,
                inserted,
                staging_id=invocation.staging_id,
                found=len(candidates),
                duplicates_skipped=skipped,
            )
        except Exception as e:
            invocation.error = e
            log_service.log_event(
                event_type="research_failed",
                message="Vendor research failed",
                error=str(e),
                staging_id=invocation.staging_id,
                project_id=request.project_id,
            )
            if invocation.staging_id and invocation.status != ProcessingStatus.INSERT_FAILED:
                try:
                    await self._transition(
                        invocation,
                        ProcessingStatus.FAILED,
                        processing_notes=f"Research failed: {e}",
                        processed_at=datetime.now(timezone.utc),
                    )
                except StoreError as update_error:
                    log_service.log_event(
                        event_type="staging_update_failed",
                        message="Failed to mark staging record as failed",
                        error=str(update_error),
                        staging_id=invocation.staging_id,
                    )
            yield streaming.error(str(e), invocation.percent, staging_id=invocation.staging_id)


@dataclass
class SweepResult:
    request: VendorResearchRequest
    outcome: ResearchOutcome | None = None
    error: str | None = None


async def research_sweep(
    orchestrator: VendorResearchOrchestrator,
    requests: Sequence[VendorResearchRequest],
    *,
    delay_seconds: float = settings.sweep_delay_seconds,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> list[SweepResult]:
    """Run invocations back to back, pausing between them for rate limits.

    Invocations are never run concurrently; research for one
    (project, category) scope must not race another.
    """
    results: list[SweepResult] = []
    for index, request in enumerate(requests):
        if index and delay_seconds > 0:
            await sleep(delay_seconds)
        try:
            outcome = await orchestrator.run(request)
        except Exception as e:
            log_service.log_event(
                event_type="sweep_item_failed",
                message=f"Research for {request.category_name or request.category_id} failed",
                error=str(e),
            )
            results.append(SweepResult(request=request, error=str(e)))
            continue
        results.append(SweepResult(request=request, outcome=outcome))
    return results
