# legal_search/application/dto/search_dto.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from legal_search.domain.models import FacetItem, Filters, FusedResult, MatchedQA

# Discovery response field -> payload key it counts.
FACET_FIELDS: dict[str, str] = {
    "courts": "court_name",
    "cities": "city",
    "court_types": "court_type",
    "legal_categories": "legal_category",
    "content_types": "content_type",
}


@dataclass(frozen=True)
class SearchResponse:
    """
    Ranked page of chunks.

    - total:         fused candidates before truncation (not the page size)
    - search_method: "hybrid" when fusion ran, otherwise the surviving path label
    """

    results: list[FusedResult]
    total: int
    search_method: str


@dataclass(frozen=True)
class QAQuery:
    """DTO for Q&A matching; bounds are checked by the use case."""

    question: str
    filters: Filters = field(default_factory=Filters)
    limit: int = 10
    score_threshold: float = 0.7


@dataclass(frozen=True)
class QAResponse:
    total_results: int
    results: list[MatchedQA]
    filters_applied: dict[str, str] | None = None


@dataclass(frozen=True)
class SynthesisResponse:
    """Synthesis payload; `error` set means a logically failed but delivered response."""

    query: str
    total_results: int = 0
    search_method: str = ""
    context_chunks: list[dict[str, Any]] = field(default_factory=list)
    sources: list[dict[str, Any]] = field(default_factory=list)
    metadata_summary: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


@dataclass(frozen=True)
class DiscoveryData:
    courts: list[FacetItem] = field(default_factory=list)
    cities: list[FacetItem] = field(default_factory=list)
    court_types: list[FacetItem] = field(default_factory=list)
    legal_categories: list[FacetItem] = field(default_factory=list)
    content_types: list[FacetItem] = field(default_factory=list)
