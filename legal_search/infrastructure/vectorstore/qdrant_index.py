"""Qdrant vector index adapter (async, read-only).

Why: Qdrant holds both chunk collections (named dense + sparse vectors) and
     the Q&A collection; the adapter encapsulates every qdrant-client type and
     raises only domain errors.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from importlib import import_module
from typing import Any, TypeVar

import structlog
from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_exponential

from legal_search.application.ports import VectorIndexPort
from legal_search.domain.errors import IndexUnavailable
from legal_search.domain.models import Filters, MatchedQA, RetrievalPath, ScoredCandidate
from legal_search.domain.types import SparseVector, Vector
from legal_search.infrastructure.vectorstore.payloads import chunk_from_payload, qa_from_payload

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SCROLL_BATCH = 256


@dataclass
class QdrantConfig:
    """Connection and collection layout for the Qdrant index."""

    url: str
    api_key: str | None = None
    prefer_grpc: bool = False
    timeout_s: int = 30
    chunks_collection: str = "legal_chunks"
    qa_collection: str = "legal_qa_pairs"
    facets_collection: str = "legal_qa_pairs"
    dense_vector_name: str = "dense"
    sparse_vector_name: str = "sparse"
    qa_vector_name: str | None = None
    retry_backoff_s: float = 0.2


class QdrantVectorIndex(VectorIndexPort):
    """Dense, sparse and Q&A nearest-neighbor search over Qdrant.

    Filters are translated into payload filters, so filtering happens inside
    the ANN search. Every backend call is retried once with backoff and then
    surfaced as `IndexUnavailable`.
    """

    supports_filtered_search = True

    def __init__(self, cfg: QdrantConfig, client: Any | None = None) -> None:
        self._cfg = cfg
        self._client = client if client is not None else self._init_client(cfg)
        self._models = import_module("qdrant_client.models")

    def _init_client(self, cfg: QdrantConfig) -> Any:
        try:
            qdrant_client = import_module("qdrant_client")
            if cfg.url == ":memory:":
                return qdrant_client.AsyncQdrantClient(location=":memory:")
            return qdrant_client.AsyncQdrantClient(
                url=cfg.url,
                api_key=cfg.api_key,
                timeout=cfg.timeout_s,
                prefer_grpc=cfg.prefer_grpc,
            )
        except Exception as ex:
            raise IndexUnavailable(f"Qdrant init failed: {ex}") from ex

    async def search_dense(
        self, vector: Vector, limit: int, filters: Filters | None = None
    ) -> list[ScoredCandidate]:
        points = await self._query(
            "search_dense",
            self._cfg.chunks_collection,
            query=list(vector),
            using=self._cfg.dense_vector_name,
            limit=limit,
            filters=filters,
        )
        return self._candidates(points, "dense")

    async def search_sparse(
        self, vector: SparseVector, limit: int, filters: Filters | None = None
    ) -> list[ScoredCandidate]:
        points = await self._query(
            "search_sparse",
            self._cfg.chunks_collection,
            query=self._models.SparseVector(
                indices=list(vector.indices), values=list(vector.values)
            ),
            using=self._cfg.sparse_vector_name,
            limit=limit,
            filters=filters,
        )
        return self._candidates(points, "sparse")

    async def search_qa(
        self,
        vector: Vector,
        limit: int,
        filters: Filters | None = None,
        score_threshold: float | None = None,
    ) -> list[MatchedQA]:
        points = await self._query(
            "search_qa",
            self._cfg.qa_collection,
            query=list(vector),
            using=self._cfg.qa_vector_name or None,
            limit=limit,
            filters=filters,
            score_threshold=score_threshold,
        )
        return [
            MatchedQA(qa=qa_from_payload(p.id, p.payload), score=float(p.score)) for p in points
        ]

    async def count_payload_values(self, keys: Sequence[str]) -> dict[str, dict[str, int]]:
        """Count distinct payload values by scrolling the facet source collection."""
        counts: dict[str, Counter[str]] = {key: Counter() for key in keys}
        offset: Any = None
        while True:
            points, offset = await self._call(
                "count_payload_values",
                lambda offset=offset: self._client.scroll(
                    collection_name=self._cfg.facets_collection,
                    limit=SCROLL_BATCH,
                    offset=offset,
                    with_payload=list(keys),
                    with_vectors=False,
                ),
            )
            for point in points:
                payload = point.payload or {}
                for key in keys:
                    value = payload.get(key)
                    if value is not None and value != "":
                        counts[key][str(value)] += 1
            if offset is None:
                break
        return {key: dict(counter) for key, counter in counts.items()}

    async def close(self) -> None:
        await self._client.close()

    # ===== Helpers =====

    async def _query(
        self,
        op: str,
        collection: str,
        *,
        query: Any,
        using: str | None,
        limit: int,
        filters: Filters | None,
        score_threshold: float | None = None,
    ) -> list[Any]:
        query_filter = self._build_filter(filters)
        response = await self._call(
            op,
            lambda: self._client.query_points(
                collection_name=collection,
                query=query,
                using=using,
                limit=limit,
                query_filter=query_filter,
                score_threshold=score_threshold,
                with_payload=True,
                with_vectors=False,
            ),
        )
        return list(response.points)

    async def _call(self, op: str, fn: Callable[[], Awaitable[T]]) -> T:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(2),
                wait=wait_exponential(multiplier=self._cfg.retry_backoff_s, max=5),
                before_sleep=_log_retry(op),
                reraise=True,
            ):
                with attempt:
                    return await fn()
        except Exception as ex:
            raise IndexUnavailable(f"{op}: {ex}") from ex
        raise IndexUnavailable(f"{op}: no attempt made")  # pragma: no cover

    def _build_filter(self, filters: Filters | None) -> Any:
        """Equality filters, ANDed.

        Numeric-looking values also match integer payloads (court_type is
        stored as a number by some ingestion runs).
        """
        if filters is None or filters.is_empty():
            return None
        m = self._models
        conditions: list[Any] = []
        for key, value in filters.as_dict().items():
            exact = m.FieldCondition(key=key, match=m.MatchValue(value=value))
            if _is_integer(value):
                numeric = m.FieldCondition(key=key, match=m.MatchValue(value=int(value)))
                conditions.append(m.Filter(should=[exact, numeric]))
            else:
                conditions.append(exact)
        return m.Filter(must=conditions)

    @staticmethod
    def _candidates(points: list[Any], path: RetrievalPath) -> list[ScoredCandidate]:
        return [
            ScoredCandidate(
                chunk=chunk_from_payload(p.id, p.payload), score=float(p.score), rank=i, path=path
            )
            for i, p in enumerate(points, start=1)
        ]


def _is_integer(value: str) -> bool:
    return value.lstrip("-").isdigit()


def _log_retry(op: str) -> Callable[[RetryCallState], None]:
    def log(state: RetryCallState) -> None:
        ex = state.outcome.exception() if state.outcome else None
        logger.warning(
            "qdrant call failed, retrying", op=op, attempt=state.attempt_number, error=str(ex)
        )

    return log
