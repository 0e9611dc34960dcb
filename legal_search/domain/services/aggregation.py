"""Aggregation over ranked results: synthesis context and facet counts.

Pure functions; the synthesis use case decides what to do when they fail.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from legal_search.domain.models import FacetItem, FusedResult


@dataclass(frozen=True)
class SynthesisAggregate:
    """Grounding material handed to downstream answer generation."""

    context_chunks: list[dict[str, Any]] = field(default_factory=list)
    sources: list[dict[str, Any]] = field(default_factory=list)
    metadata_summary: dict[str, Any] = field(default_factory=dict)


def rank_facets(counts: Mapping[str, int]) -> list[FacetItem]:
    """Facet items highest count first; ties by value so order is stable."""
    return [
        FacetItem(value=value, count=count)
        for value, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        if value and count > 0
    ]


def count_facets(values: Iterable[str | None]) -> list[FacetItem]:
    """Count distinct non-empty values."""
    return rank_facets(Counter(v for v in values if v))


def _counts(values: Iterable[str | None]) -> dict[str, int]:
    return {item.value: item.count for item in count_facets(values)}


def build_context_chunks(results: Sequence[FusedResult]) -> list[dict[str, Any]]:
    return [
        {
            "chunk_id": r.chunk.chunk_id,
            "decision_id": r.chunk.decision_id,
            "case_number": r.chunk.case_number,
            "section": r.chunk.section,
            "text": r.chunk.text,
            "legal_category": r.chunk.legal_category,
            "title": r.chunk.display.title,
            "score": r.score,
        }
        for r in results
    ]


def build_sources(results: Sequence[FusedResult]) -> list[dict[str, Any]]:
    """One entry per decision_id, in order of first (best-ranked) appearance."""
    sources: dict[str, dict[str, Any]] = {}
    for r in results:
        c = r.chunk
        entry = sources.get(c.decision_id)
        if entry is None:
            sources[c.decision_id] = {
                "decision_id": c.decision_id,
                "case_number": c.case_number,
                "court_name": c.court_name,
                "court_type": c.court_type,
                "city": c.city,
                "legal_category": c.legal_category,
                "title": c.display.title,
                "score": r.score,
                "chunk_count": 1,
            }
        else:
            entry["chunk_count"] += 1
            entry["score"] = max(entry["score"], r.score)
    return list(sources.values())


def summarize_metadata(results: Sequence[FusedResult]) -> dict[str, Any]:
    chunks = [r.chunk for r in results]
    scores = [r.score for r in results]
    return {
        "legal_categories": _counts(c.legal_category for c in chunks),
        "court_types": _counts(c.filter_value("court_type") for c in chunks),
        "cities": _counts(c.city for c in chunks),
        "decision_types": _counts(c.display.decision_type for c in chunks),
        "unique_decisions": len({c.decision_id for c in chunks}),
        "score_range": {"min": min(scores), "max": max(scores)} if scores else {},
    }


def aggregate(results: Sequence[FusedResult], top_n: int) -> SynthesisAggregate:
    """Build the synthesis aggregate over the top_n fused results."""
    top = list(results[: max(top_n, 0)])
    return SynthesisAggregate(
        context_chunks=build_context_chunks(top),
        sources=build_sources(top),
        metadata_summary=summarize_metadata(top),
    )
