from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from sse_starlette.sse import EventSourceResponse

from vendorscout.agents.orchestrator import VendorResearchOrchestrator
from vendorscout.api.deps import get_orchestrator, get_store
from vendorscout.models.schemas import (
    ErrorResponse,
    StagingRecordResponse,
    VendorResearchRequest,
    VendorResearchResponse,
)
from vendorscout.services import logger as log_service
from vendorscout.services import streaming
from vendorscout.services.supabase import VendorStore

router = APIRouter(prefix="/api/vendor-research", tags=["vendor-research"])


def _wants_sse(request: Request) -> bool:
    return "text/event-stream" in request.headers.get("accept", "")


@router.post("", response_model=VendorResearchResponse)
async def vendor_research(
    body: VendorResearchRequest,
    request: Request,
    orchestrator: VendorResearchOrchestrator = Depends(get_orchestrator),
):
    """Run one research invocation.

    With ``stream`` set the progress events are streamed as NDJSON, or as SSE
    when the client accepts ``text/event-stream``. Otherwise the final result
    is returned once the pipeline finishes.
    """
    log_service.log_event(
        event_type="research_requested",
        message="Vendor research requested",
        project_id=body.project_id,
        category=body.category_name or body.category_id,
        location=body.location,
        stream=body.stream,
    )

    if body.stream:
        events = orchestrator.research(body)
        if _wants_sse(request):
            return EventSourceResponse(streaming.sse_records(events, orchestrator.aclose))
        return StreamingResponse(
            streaming.ndjson_records(events, orchestrator.aclose),
            media_type="application/x-ndjson",
        )

    try:
        outcome = await orchestrator.run(body)
    except Exception as e:
        return JSONResponse(status_code=500, content=ErrorResponse(error=str(e)).model_dump())
    finally:
        await orchestrator.aclose()

    return VendorResearchResponse(
        vendors=outcome.vendors,
        count=outcome.count,
        staging_id=outcome.staging_id,
        found=outcome.found,
        duplicates_skipped=outcome.duplicates_skipped,
        message=outcome.message,
    )


@router.get("/staging", response_model=StagingRecordResponse)
async def list_staging(
    project_id: str = Query(...),
    limit: int = Query(20, ge=1, le=100),
    store: VendorStore = Depends(get_store),
):
    """Recent research audit records for a project, newest first."""
    records = await store.list_staging_records(project_id, limit=limit)
    return StagingRecordResponse(records=[r.model_dump(mode="json") for r in records])
