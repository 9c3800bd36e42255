from __future__ import annotations

import contextlib
from typing import Any

import httpx

from vendorscout.services.errors import ConfigurationError, ResearchProviderError
from vendorscout.tools.results import ResearchQuery, ResearchResult, ResearchSource, sources_to_text

# Scraped pages can be long; keep enough of each for contact details.
MAX_PAGE_CHARS = 4000


class FirecrawlResearch:
    """Search plus markdown scrape of the hits through Firecrawl's /v1/search."""

    name = "firecrawl"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.firecrawl.dev",
        max_results: int = 10,
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.max_results = max_results
        self.timeout = timeout
        self._http_client = http_client

    def _session(self):
        if self._http_client is not None:
            return contextlib.nullcontext(self._http_client)
        return httpx.AsyncClient(timeout=self.timeout)

    def _payload(self, query: ResearchQuery) -> dict[str, Any]:
        return {
            "query": query.search_terms,
            "limit": self.max_results,
            "scrapeOptions": {"formats": ["markdown"], "onlyMainContent": True},
        }

    async def research(self, query: ResearchQuery) -> ResearchResult:
        if not self.api_key:
            raise ConfigurationError(["FIRECRAWL_API_KEY"])

        try:
            async with self._session() as client:
                response = await client.post(
                    f"{self.base_url}/v1/search",
                    json=self._payload(query),
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise ResearchProviderError(
                self.name, f"{e.response.status_code} - {e.response.text[:500]}"
            ) from e
        except httpx.HTTPError as e:
            raise ResearchProviderError(self.name, str(e) or type(e).__name__) from e

        if not data.get("success", True):
            raise ResearchProviderError(self.name, str(data.get("error") or "search failed"))

        sources: list[ResearchSource] = []
        for item in data.get("data", []) or []:
            content = item.get("markdown") or item.get("description") or ""
            sources.append(
                ResearchSource(
                    title=item.get("title", "") or "",
                    url=item.get("url", "") or "",
                    content=content[:MAX_PAGE_CHARS],
                )
            )
        return ResearchResult(text=sources_to_text(sources), provider=self.name, sources=sources)
