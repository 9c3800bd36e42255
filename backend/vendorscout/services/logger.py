"""Structured logging for vendor research runs.

Every helper writes a single ``KIND: {json}`` line to the ``vendorscout``
logger, so research runs can be followed (and grepped) per staging record.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from vendorscout.config import Settings, settings

NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "sse_starlette.sse",
    "httpx",
    "httpcore",
    "hpack",
    "openai._base_client",
    "postgrest",
    "asyncio",
)

logger = logging.getLogger("vendorscout")


def _level(name: str, default: int) -> int:
    return getattr(logging, name.upper(), default)


def configure_logging(config: Settings = settings) -> Path:
    """Send application logs to the console and ``<log_dir>/vendorscout.log``."""
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "vendorscout.log"

    logging.basicConfig(
        level=_level(config.app_log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(_level(config.noisy_log_level, logging.WARNING))
    return log_file


configure_logging()


def _emit(kind: str, **fields: Any) -> None:
    record = {"timestamp": datetime.now(timezone.utc).isoformat(), **fields}
    logger.info("%s: %s", kind, json.dumps(record, default=str))


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    _emit(
        "LLM_CALL",
        model=model,
        caller=caller,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
        duration_ms=duration_ms,
        status=status,
        error=error,
    )


def log_research_call(
    provider: str,
    status: str,
    duration_ms: int = 0,
    sources: int = 0,
    error: Optional[str] = None,
) -> None:
    """One call to a research capability (Perplexity, Tavily, Firecrawl)."""
    _emit(
        "RESEARCH_CALL",
        provider=provider,
        status=status,
        duration_ms=duration_ms,
        sources=sources,
        error=error,
    )


def log_extraction(
    strategy: str,
    extracted: int,
    valid: int,
    error: Optional[str] = None,
) -> None:
    _emit(
        "EXTRACTION",
        strategy=strategy,
        extracted=extracted,
        valid=valid,
        status="error" if error else "success",
        error=error,
    )


def log_research_stage(
    staging_id: str | None,
    stage: str,
    status: str,
    data: Optional[dict[str, Any]] = None,
) -> None:
    """A staging record moving to ``stage``."""
    _emit("RESEARCH_STAGE", staging_id=staging_id, stage=stage, status=status, data=data)


def log_db_operation(
    operation: str,
    table: str,
    status: str,
    details: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    _emit("DB_OPERATION", operation=operation, table=table, status=status, details=details, error=error)


def log_event(event_type: str, message: str, **kwargs) -> None:
    _emit("EVENT", event_type=event_type, message=message, **kwargs)
