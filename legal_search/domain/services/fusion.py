# legal_search/domain/services/fusion.py
# Pure domain services: no I/O, deterministic, no external libraries.
"""Hybrid fusion of dense and sparse rankings.

Reciprocal Rank Fusion: for every chunk seen on either path,

    rrf_score = w_dense / (k + dense_rank) + w_sparse / (k + sparse_rank)

where a term contributes 0 when the chunk is absent from that path. With the
default weights of 1.0 this is plain rank-only RRF.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from legal_search.domain.models import (
    Chunk,
    FusedResult,
    PathRank,
    RetrievalPath,
    RrfRanking,
    ScoredCandidate,
    SinglePathRanking,
)

DEFAULT_RRF_K = 60.0
_ABSENT = float("inf")


@dataclass(frozen=True)
class RankedPage:
    """Truncated result page plus the candidate count before truncation."""

    results: list[FusedResult]
    total: int


def _id_order(chunk_id: str | int) -> tuple[int, int | str]:
    # integer point ids sort numerically and before string ids
    if isinstance(chunk_id, int) and not isinstance(chunk_id, bool):
        return (0, chunk_id)
    return (1, str(chunk_id))


def _index_by_key(candidates: Sequence[ScoredCandidate]) -> dict[str, ScoredCandidate]:
    """First occurrence wins if an adapter ever returns the same point twice."""
    indexed: dict[str, ScoredCandidate] = {}
    for c in candidates:
        indexed.setdefault(c.chunk.key, c)
    return indexed


def rrf_term(rank: int | None, k: float, weight: float = 1.0) -> float:
    if rank is None:
        return 0.0
    return weight / (k + rank)


def fuse(
    dense: Sequence[ScoredCandidate],
    sparse: Sequence[ScoredCandidate],
    k: float = DEFAULT_RRF_K,
    limit: int | None = None,
    dense_weight: float = 1.0,
    sparse_weight: float = 1.0,
) -> RankedPage:
    """Merge both paths with RRF, ordered by descending rrf_score.

    Ties break on dense rank, then sparse rank (absent ranks sort last), then
    chunk id ascending, so the output is fully deterministic.

    Args:
        dense: Dense-path candidates with 1-based ranks
        sparse: Sparse-path candidates with 1-based ranks
        k: Smoothing constant (must be > 0)
        limit: Page size; None returns every fused candidate
        dense_weight: Multiplier on the dense reciprocal-rank term
        sparse_weight: Multiplier on the sparse reciprocal-rank term

    Returns:
        RankedPage whose total counts fused candidates before truncation
    """
    if k <= 0:
        raise ValueError("k must be > 0")

    dense_by_key = _index_by_key(dense)
    sparse_by_key = _index_by_key(sparse)

    chunks: dict[str, Chunk] = {}
    for c in (*dense, *sparse):
        chunks.setdefault(c.chunk.key, c.chunk)

    fused: list[tuple[tuple[float, float, float, tuple[int, int | str]], FusedResult]] = []
    for key, chunk in chunks.items():
        d = dense_by_key.get(key)
        s = sparse_by_key.get(key)
        d_hit = PathRank(rank=d.rank, score=d.score) if d else None
        s_hit = PathRank(rank=s.rank, score=s.score) if s else None
        score = rrf_term(d_hit.rank if d_hit else None, k, dense_weight) + rrf_term(
            s_hit.rank if s_hit else None, k, sparse_weight
        )
        result = FusedResult(
            chunk=chunk,
            score=score,
            ranking=RrfRanking(rrf_score=score, dense=d_hit, sparse=s_hit),
        )
        sort_key = (
            -score,
            float(d_hit.rank) if d_hit else _ABSENT,
            float(s_hit.rank) if s_hit else _ABSENT,
            _id_order(chunk.id),
        )
        fused.append((sort_key, result))

    fused.sort(key=lambda pair: pair[0])
    ordered = [result for _, result in fused]
    page = ordered if limit is None else ordered[: max(limit, 0)]
    return RankedPage(results=page, total=len(ordered))


def passthrough(
    candidates: Sequence[ScoredCandidate],
    path: RetrievalPath,
    limit: int | None = None,
    fusion_method: str | None = None,
) -> RankedPage:
    """Single-path results without fusion (non-hybrid mode or degraded hybrid).

    Candidates keep their path order; rank and raw score are carried over.
    """
    unique = list(_index_by_key(candidates).values())
    results = [
        FusedResult(
            chunk=c.chunk,
            score=c.score,
            ranking=SinglePathRanking(
                path=path,
                hit=PathRank(rank=c.rank, score=c.score),
                fusion_method=fusion_method,
            ),
        )
        for c in unique
    ]
    page = results if limit is None else results[: max(limit, 0)]
    return RankedPage(results=page, total=len(results))
