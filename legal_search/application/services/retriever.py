"""Candidate retrieval over the chunk index: dense and sparse paths.

Both paths are issued concurrently and joined before fusion. Each path has its
own timeout; in hybrid mode a failed or timed-out path degrades the request to
the surviving path instead of failing it.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from dataclasses import dataclass, field

import structlog

from legal_search.application.ports import EmbeddingPort, SparseEncoderPort, VectorIndexPort
from legal_search.domain.errors import DomainError, IndexUnavailable, PartialFailure
from legal_search.domain.models import Filters, RetrievalPath, ScoredCandidate
from legal_search.domain.services.filtering import apply_filters, rerank
from legal_search.domain.services.validation import SEARCH_LIMIT_BOUNDS, clamp, require_text

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RetrievalOutcome:
    """Per-path candidates plus the paths that failed along the way."""

    dense: list[ScoredCandidate]
    sparse: list[ScoredCandidate]
    hybrid: bool
    failures: tuple[PartialFailure, ...] = field(default_factory=tuple)

    def failed(self, path: RetrievalPath) -> bool:
        return any(f.path == path for f in self.failures)


class CandidateRetriever:
    """Embeds the query and runs dense/sparse nearest-neighbor search.

    Filters are pushed into the index when it supports filtered search and
    applied as a post-filter otherwise; both give the same candidate set.
    """

    def __init__(
        self,
        embedding: EmbeddingPort,
        sparse_encoder: SparseEncoderPort,
        index: VectorIndexPort,
        subquery_timeout_s: float = 3.0,
    ) -> None:
        self.embedding = embedding
        self.sparse_encoder = sparse_encoder
        self.index = index
        self.subquery_timeout_s = subquery_timeout_s

    async def retrieve(
        self,
        query_text: str,
        limit: int,
        hybrid: bool = True,
        filters: Filters | None = None,
    ) -> RetrievalOutcome:
        """Fetch up to `limit` candidates per path (clamped to [1, 100]).

        Raises:
            InvalidQuery: If the query text is empty after trimming
            IndexUnavailable: If no path produced candidates
            EmbeddingError: If dense embedding failed in non-hybrid mode
        """
        text = require_text(query_text, "query_text")
        k = clamp(limit, *SEARCH_LIMIT_BOUNDS)
        filters = filters or Filters()
        pushed = filters if self.index.supports_filtered_search and not filters.is_empty() else None

        if not hybrid:
            dense = await self._run("dense", self._dense(text, k, pushed))
            return RetrievalOutcome(
                dense=self._post_filter(dense, filters, pushed), sparse=[], hybrid=False
            )

        dense_res, sparse_res = await asyncio.gather(
            self._run("dense", self._dense(text, k, pushed)),
            self._run("sparse", self._sparse(text, k, pushed)),
            return_exceptions=True,
        )

        failures: list[PartialFailure] = []
        outcomes: dict[RetrievalPath, list[ScoredCandidate]] = {}
        errors: list[BaseException] = []
        for path, res in (("dense", dense_res), ("sparse", sparse_res)):
            if isinstance(res, BaseException):
                if not isinstance(res, DomainError):
                    raise res
                errors.append(res)
                failures.append(PartialFailure(path=path, reason=str(res) or type(res).__name__))
                outcomes[path] = []
            else:
                outcomes[path] = self._post_filter(res, filters, pushed)

        if len(failures) == 2:
            logger.error("all retrieval paths failed", reasons=[f.reason for f in failures])
            raise next(
                (e for e in errors if isinstance(e, DomainError)),
                IndexUnavailable("retrieval timed out on every path"),
            )
        for failure in failures:
            logger.warning("retrieval path degraded", path=failure.path, reason=failure.reason)

        return RetrievalOutcome(
            dense=outcomes["dense"],
            sparse=outcomes["sparse"],
            hybrid=True,
            failures=tuple(failures),
        )

    async def _run(
        self, path: RetrievalPath, work: Awaitable[list[ScoredCandidate]]
    ) -> list[ScoredCandidate]:
        start = time.perf_counter()
        try:
            return await asyncio.wait_for(work, timeout=self.subquery_timeout_s)
        except asyncio.TimeoutError as ex:
            raise IndexUnavailable(
                f"{path} retrieval timed out after {self.subquery_timeout_s:.1f}s"
            ) from ex
        finally:
            logger.debug(
                "retrieval path finished",
                path=path,
                elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
            )

    async def _dense(self, text: str, k: int, filters: Filters | None) -> list[ScoredCandidate]:
        vector = await asyncio.to_thread(self.embedding.embed_query, text)
        return await self.index.search_dense(vector, k, filters)

    async def _sparse(self, text: str, k: int, filters: Filters | None) -> list[ScoredCandidate]:
        vector = self.sparse_encoder.encode_query(text)
        if vector.is_empty():
            # nothing lexical left after normalisation (e.g. only stopwords)
            return []
        return await self.index.search_sparse(vector, k, filters)

    @staticmethod
    def _post_filter(
        candidates: list[ScoredCandidate], filters: Filters, pushed: Filters | None
    ) -> list[ScoredCandidate]:
        if pushed is not None or filters.is_empty():
            return candidates
        return rerank(apply_filters(candidates, filters))
