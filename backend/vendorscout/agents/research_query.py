from __future__ import annotations

from vendorscout.models.schemas import VendorResearchRequest
from vendorscout.services.prompt_store import render_prompt
from vendorscout.tools.results import ResearchQuery


def city_from_location(location: str) -> str:
    """``"Austin, TX"`` -> ``"Austin"``."""
    parts = location.split(",")
    return parts[0].strip() or location.strip()


def state_from_location(location: str) -> str:
    """``"Austin, TX"`` -> ``"TX"``; empty when no state is given."""
    parts = location.split(",")
    return parts[1].strip() if len(parts) > 1 else ""


def build_research_query(request: VendorResearchRequest, category_name: str) -> ResearchQuery:
    specialization = (request.specialization or "").strip()
    custom_context = (request.custom_context or "").strip()
    zip_code = (request.zip_code or "").strip()
    location = request.location.strip()

    prompt = render_prompt(
        "research.query",
        category_name=category_name,
        specialization_text=f" specializing in {specialization}" if specialization else "",
        location=location,
        zip_code=zip_code,
        context_text=f"Additional requirements: {custom_context}." if custom_context else "",
    )
    search_terms = render_prompt(
        "research.search_terms",
        base_term=f"{specialization} {category_name}" if specialization else category_name,
        location=location,
        zip_code=zip_code,
        context_suffix=f" {custom_context}" if custom_context else "",
    )
    return ResearchQuery(
        prompt=prompt,
        search_terms=" ".join(search_terms.split()),
        location=location,
        zip_code=zip_code or None,
    )
