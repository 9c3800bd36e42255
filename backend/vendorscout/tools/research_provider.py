from __future__ import annotations

import logging
import time
from typing import Protocol

from vendorscout.config import Settings, settings
from vendorscout.tools.firecrawl_search import FirecrawlResearch
from vendorscout.tools.perplexity_research import PerplexityResearch
from vendorscout.tools.results import ResearchQuery, ResearchResult
from vendorscout.tools.tavily_search import TavilyResearch
from vendorscout.services import logger as log_service
from vendorscout.services.errors import ConfigurationError, ResearchProviderError

logger = logging.getLogger(__name__)

PROVIDER_NAMES = ("perplexity", "tavily", "firecrawl")


class ResearchCapability(Protocol):
    name: str

    async def research(self, query: ResearchQuery) -> ResearchResult: ...


def build_capability(name: str, config: Settings = settings) -> ResearchCapability:
    provider = name.lower().strip()
    if provider == "perplexity":
        return PerplexityResearch(
            config.perplexity_api_key,
            base_url=config.perplexity_base_url,
            model=config.perplexity_model,
            max_tokens=config.perplexity_max_tokens,
            timeout=config.research_timeout_seconds,
        )
    if provider == "tavily":
        return TavilyResearch(config.tavily_api_key, max_results=config.research_max_results)
    if provider == "firecrawl":
        return FirecrawlResearch(
            config.firecrawl_api_key,
            base_url=config.firecrawl_base_url,
            max_results=config.research_max_results,
            timeout=config.research_timeout_seconds,
        )
    raise ConfigurationError(["RESEARCH_PROVIDER"], f"Unsupported research provider: {name}")


class ResearchProvider:
    """Primary research capability with an optional single fallback.

    The fallback runs when the primary raises ``ResearchProviderError`` or
    returns empty text. Nothing is retried.
    """

    def __init__(
        self,
        primary: ResearchCapability,
        fallback: ResearchCapability | None = None,
    ):
        self.primary = primary
        self.fallback = fallback

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "ResearchProvider":
        primary = build_capability(config.research_provider, config)
        fallback_name = config.research_fallback_provider.strip()
        fallback = None
        if fallback_name and fallback_name.lower() != primary.name:
            fallback = build_capability(fallback_name, config)
        return cls(primary, fallback)

    async def research(self, query: ResearchQuery) -> ResearchResult:
        try:
            result = await _timed(self.primary, query)
            if result.text.strip() or self.fallback is None:
                return result
            reason = f"{self.primary.name} returned empty text"
        except ResearchProviderError as e:
            if self.fallback is None:
                raise
            reason = str(e)

        logger.warning("Falling back to %s research: %s", self.fallback.name, reason)
        result = await _timed(self.fallback, query)
        result.fallback_from = self.primary.name
        result.fallback_reason = reason
        return result


async def _timed(capability: ResearchCapability, query: ResearchQuery) -> ResearchResult:
    t0 = time.monotonic()
    try:
        result = await capability.research(query)
    except ResearchProviderError as e:
        log_service.log_research_call(
            capability.name,
            "error",
            duration_ms=int((time.monotonic() - t0) * 1000),
            error=str(e),
        )
        raise
    log_service.log_research_call(
        capability.name,
        "success" if result.text.strip() else "empty",
        duration_ms=int((time.monotonic() - t0) * 1000),
        sources=len(result.sources),
    )
    return result
