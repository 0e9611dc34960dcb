"""Lexical/facet filtering over candidate sets.

Pure, order-preserving and idempotent: a candidate survives iff every present
filter field equals the stored value (string equality, case-sensitive).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar

from legal_search.domain.models import Filters, MatchedQA, ScoredCandidate


class Filterable(Protocol):
    def filter_value(self, name: str) -> str | None: ...


C = TypeVar("C", ScoredCandidate, MatchedQA)


def matches(item: Filterable, filters: Filters) -> bool:
    return all(item.filter_value(name) == wanted for name, wanted in filters.as_dict().items())


def _subject(candidate: ScoredCandidate | MatchedQA) -> Filterable:
    if isinstance(candidate, ScoredCandidate):
        return candidate.chunk
    return candidate.qa


def apply_filters(candidates: Sequence[C], filters: Filters) -> list[C]:
    """Keep candidates whose chunk (or Q&A pair) satisfies every filter."""
    if filters.is_empty():
        return list(candidates)
    return [c for c in candidates if matches(_subject(c), filters)]


def rerank(candidates: Sequence[ScoredCandidate]) -> list[ScoredCandidate]:
    """Reassign contiguous 1-based ranks after post-filtering removed entries."""
    return [
        ScoredCandidate(chunk=c.chunk, score=c.score, rank=i, path=c.path)
        for i, c in enumerate(candidates, start=1)
    ]
