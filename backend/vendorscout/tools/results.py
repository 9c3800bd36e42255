from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ResearchQuery:
    """What a research provider is asked for.

    ``prompt`` is the long-form instruction for language-model research;
    ``search_terms`` is the short keyword query for search/crawl services.
    """

    prompt: str
    search_terms: str
    location: str | None = None
    zip_code: str | None = None


@dataclass
class ResearchSource:
    title: str
    url: str
    content: str = ""


@dataclass
class ResearchResult:
    text: str
    provider: str
    sources: list[ResearchSource] = field(default_factory=list)
    fallback_from: str | None = None
    fallback_reason: str | None = None

    def to_staging_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "provider": self.provider,
            "research": self.text,
            "sources": [{"title": s.title, "url": s.url} for s in self.sources],
        }
        if self.fallback_from:
            payload["fallback_from"] = self.fallback_from
            payload["fallback_reason"] = self.fallback_reason
        return payload


def sources_to_text(sources: list[ResearchSource]) -> str:
    """Render search hits as markdown sections the fallback parser can split."""
    blocks = []
    for source in sources:
        title = source.title.strip() or source.url
        body = source.content.strip()
        blocks.append(f"## {title}\nWebsite: {source.url}\n{body}".rstrip())
    return "\n\n".join(blocks)
