"""Search decision chunks with hybrid (dense + sparse) retrieval.

Pipeline:
1. Validate input (query_text, limit)
2. Retrieve a fixed-depth candidate pool per path concurrently
3. Fuse with RRF, or pass a single path through (non-hybrid / degraded)
4. Truncate to limit, report total before truncation
"""

from __future__ import annotations

import time

import structlog

from legal_search.application.dto.search_dto import SearchResponse
from legal_search.application.ports import TelemetryPort
from legal_search.application.services.retriever import CandidateRetriever, RetrievalOutcome
from legal_search.domain.errors import DomainError, ValidationError
from legal_search.domain.models import SearchQuery
from legal_search.domain.services.fusion import DEFAULT_RRF_K, RankedPage, fuse, passthrough
from legal_search.domain.services.validation import (
    SEARCH_LIMIT_BOUNDS,
    clamp,
    require_limit,
    require_text,
)
from legal_search.domain.types import Result

logger = structlog.get_logger(__name__)

HYBRID = "hybrid"
DENSE_ONLY = "dense-only"
SPARSE_ONLY = "sparse-only"


class SearchDecisions:
    """Application use case behind `POST search`. Uses ports only."""

    def __init__(
        self,
        retriever: CandidateRetriever,
        rrf_k: float = DEFAULT_RRF_K,
        dense_weight: float = 1.0,
        sparse_weight: float = 1.0,
        candidate_pool: int = SEARCH_LIMIT_BOUNDS[1],
        telemetry: TelemetryPort | None = None,
    ) -> None:
        self.retriever = retriever
        self.rrf_k = rrf_k
        self.dense_weight = dense_weight
        self.sparse_weight = sparse_weight
        self.candidate_pool = clamp(candidate_pool, *SEARCH_LIMIT_BOUNDS)
        self.telemetry = telemetry

    async def execute(self, query: SearchQuery) -> Result[SearchResponse, DomainError]:
        try:
            text = require_text(query.query_text, "query_text")
            limit = require_limit(query.limit, "limit", SEARCH_LIMIT_BOUNDS)
        except ValidationError as ex:
            return Result.failure(ex)

        start = time.perf_counter()
        try:
            outcome = await self.retriever.retrieve(
                text,
                max(self.candidate_pool, limit),
                hybrid=query.use_hybrid,
                filters=query.filters,
            )
        except DomainError as ex:
            logger.warning("search failed", error=str(ex), error_type=type(ex).__name__)
            return Result.failure(ex)

        page, method = self._rank(outcome, limit)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "search completed",
            query_len=len(text),
            method=method,
            results=len(page.results),
            total=page.total,
            elapsed_ms=round(elapsed_ms, 2),
        )
        if self.telemetry is not None:
            self.telemetry.observe("legal_search.search.latency_ms", elapsed_ms, {"method": method})
            if outcome.failures:
                self.telemetry.incr("legal_search.search.degraded", {"method": method})

        return Result.success(
            SearchResponse(results=page.results, total=page.total, search_method=method)
        )

    def _rank(self, outcome: RetrievalOutcome, limit: int) -> tuple[RankedPage, str]:
        if not outcome.hybrid:
            return passthrough(outcome.dense, "dense", limit), DENSE_ONLY
        if outcome.failed("sparse"):
            return passthrough(outcome.dense, "dense", limit, fusion_method=DENSE_ONLY), DENSE_ONLY
        if outcome.failed("dense"):
            return (
                passthrough(outcome.sparse, "sparse", limit, fusion_method=SPARSE_ONLY),
                SPARSE_ONLY,
            )
        page = fuse(
            outcome.dense,
            outcome.sparse,
            k=self.rrf_k,
            limit=limit,
            dense_weight=self.dense_weight,
            sparse_weight=self.sparse_weight,
        )
        return page, HYBRID
