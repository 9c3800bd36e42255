from __future__ import annotations

import contextlib
from typing import Any

import httpx

from vendorscout.services.errors import ConfigurationError, ResearchProviderError
from vendorscout.services.prompt_store import render_prompt
from vendorscout.tools.results import ResearchQuery, ResearchResult, ResearchSource


class PerplexityResearch:
    """Language-model research through Perplexity's chat completions API."""

    name = "perplexity"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.perplexity.ai",
        model: str = "sonar-deep-research",
        max_tokens: int = 2000,
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._http_client = http_client

    def _session(self):
        if self._http_client is not None:
            return contextlib.nullcontext(self._http_client)
        return httpx.AsyncClient(timeout=self.timeout)

    def _payload(self, query: ResearchQuery) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": render_prompt("research.system_prompt")},
                {"role": "user", "content": query.prompt},
            ],
            "max_tokens": self.max_tokens,
            "temperature": 0.2,
            "top_p": 0.9,
            "return_images": False,
            "return_related_questions": False,
            "search_recency_filter": "month",
            "frequency_penalty": 1,
        }

    async def research(self, query: ResearchQuery) -> ResearchResult:
        if not self.api_key:
            raise ConfigurationError(["PERPLEXITY_API_KEY"])

        try:
            async with self._session() as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
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

        choices = data.get("choices") or []
        message = choices[0].get("message") if choices else None
        if not message or not isinstance(message.get("content"), str):
            raise ResearchProviderError(self.name, "Invalid response from Perplexity API")

        sources = [
            ResearchSource(title=url, url=url)
            for url in data.get("citations", []) or []
            if isinstance(url, str)
        ]
        return ResearchResult(text=message["content"], provider=self.name, sources=sources)
