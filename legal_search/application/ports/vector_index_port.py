"""Vector index port: read-only nearest-neighbor queries over chunks and Q&A pairs.

Adapters raise domain errors only (`IndexUnavailable` once their retry is
exhausted); library exception types never cross this boundary.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from legal_search.domain.models import Filters, MatchedQA, ScoredCandidate
from legal_search.domain.types import SparseVector, Vector


@runtime_checkable
class VectorIndexPort(Protocol):
    # True when filters are applied inside the ANN search (pre-filter).
    supports_filtered_search: bool

    async def search_dense(
        self, vector: Vector, limit: int, filters: Filters | None = None
    ) -> list[ScoredCandidate]:
        """Chunks by descending cosine similarity, ranks 1-based."""
        ...

    async def search_sparse(
        self, vector: SparseVector, limit: int, filters: Filters | None = None
    ) -> list[ScoredCandidate]:
        """Chunks by descending sparse score, ranks 1-based."""
        ...

    async def search_qa(
        self,
        vector: Vector,
        limit: int,
        filters: Filters | None = None,
        score_threshold: float | None = None,
    ) -> list[MatchedQA]:
        """Q&A pairs by descending similarity."""
        ...

    async def count_payload_values(self, keys: Sequence[str]) -> dict[str, dict[str, int]]:
        """Distinct-value counts per payload key over the facet source collection."""
        ...

    async def close(self) -> None: ...
