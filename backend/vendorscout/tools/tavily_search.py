from __future__ import annotations

from typing import Any

from tavily import AsyncTavilyClient

from vendorscout.services.errors import ConfigurationError, ResearchProviderError
from vendorscout.tools.results import ResearchQuery, ResearchResult, ResearchSource, sources_to_text


class TavilyResearch:
    """Web search through Tavily, flattened into markdown sections."""

    name = "tavily"

    def __init__(
        self,
        api_key: str,
        *,
        max_results: int = 10,
        search_depth: str = "advanced",
        client: Any | None = None,
    ):
        self.api_key = api_key
        self.max_results = max_results
        self.search_depth = search_depth
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = AsyncTavilyClient(api_key=self.api_key)
        return self._client

    async def research(self, query: ResearchQuery) -> ResearchResult:
        if not self.api_key and self._client is None:
            raise ConfigurationError(["TAVILY_API_KEY"])

        try:
            response = await self._get_client().search(
                query=query.search_terms,
                search_depth=self.search_depth,
                max_results=self.max_results,
                topic="general",
                include_raw_content=False,
            )
        except Exception as e:
            raise ResearchProviderError(self.name, str(e) or type(e).__name__) from e

        sources = [
            ResearchSource(
                title=r.get("title", ""),
                url=r.get("url", ""),
                content=r.get("content", ""),
            )
            for r in response.get("results", [])
        ]
        return ResearchResult(text=sources_to_text(sources), provider=self.name, sources=sources)
