from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from vendorscout.models.events import EventType, ProgressEvent, Stage
from vendorscout.services import logger as log_service


def progress(stage: Stage, message: str, percent: int, **kwargs: Any) -> ProgressEvent:
    return ProgressEvent(
        type=EventType.PROGRESS,
        stage=stage,
        message=message,
        progress_percent=percent,
        data=kwargs,
    )


def complete(
    message: str,
    vendors: list[dict[str, Any]],
    *,
    staging_id: str | None = None,
    found: int = 0,
    duplicates_skipped: int = 0,
) -> ProgressEvent:
    return ProgressEvent(
        type=EventType.COMPLETE,
        stage=Stage.COMPLETE,
        message=message,
        progress_percent=100,
        data={
            "vendors": vendors,
            "count": len(vendors),
            "staging_id": staging_id,
            "found": found,
            "duplicates_skipped": duplicates_skipped,
        },
    )


def error(message: str, percent: int, *, staging_id: str | None = None) -> ProgressEvent:
    data: dict[str, Any] = {"error": message}
    if staging_id:
        data["staging_id"] = staging_id
    return ProgressEvent(
        type=EventType.ERROR,
        stage=Stage.ERROR,
        message=message,
        progress_percent=percent,
        data=data,
    )


async def _records(
    events: AsyncIterator[ProgressEvent],
    render: Callable[[ProgressEvent], Any],
    on_close: Callable[[], Awaitable[None]] | None,
) -> AsyncIterator[Any]:
    percent = 0
    try:
        async for event in events:
            percent = event.progress_percent
            yield render(event)
    except Exception as e:
        log_service.log_event(
            event_type="stream_error",
            message="Unhandled error in vendor research stream",
            error=str(e),
        )
        yield render(error("Vendor research stream failed unexpectedly.", percent))
    finally:
        if on_close is not None:
            await on_close()


def ndjson_records(
    events: AsyncIterator[ProgressEvent],
    on_close: Callable[[], Awaitable[None]] | None = None,
) -> AsyncIterator[str]:
    """Newline-delimited JSON body for a streaming HTTP response."""
    return _records(events, ProgressEvent.format, on_close)


def sse_records(
    events: AsyncIterator[ProgressEvent],
    on_close: Callable[[], Awaitable[None]] | None = None,
) -> AsyncIterator[dict[str, str]]:
    """``{"event", "data"}`` dicts for sse-starlette's EventSourceResponse."""
    return _records(events, ProgressEvent.to_sse, on_close)
