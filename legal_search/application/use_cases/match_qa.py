"""Q&A matching: a separate retrieval path over the Q&A collection.

Results carry the Q&A content and the source decision's display metadata as
denormalized at index time; nothing is joined at query time.
"""

from __future__ import annotations

import asyncio

import structlog

from legal_search.application.dto.search_dto import QAQuery, QAResponse
from legal_search.application.ports import EmbeddingPort, VectorIndexPort
from legal_search.domain.errors import DomainError, EmbeddingError, ValidationError
from legal_search.domain.models import MatchedQA
from legal_search.domain.services.filtering import apply_filters
from legal_search.domain.services.validation import (
    QA_LIMIT_BOUNDS,
    require_limit,
    require_text,
    require_threshold,
)
from legal_search.domain.types import Result

logger = structlog.get_logger(__name__)

# Candidate oversampling when filters cannot be pushed into the index.
POST_FILTER_OVERSAMPLE = 4


class MatchQA:
    def __init__(self, embedding: EmbeddingPort, index: VectorIndexPort) -> None:
        self.embedding = embedding
        self.index = index

    async def execute(self, req: QAQuery) -> Result[QAResponse, DomainError]:
        try:
            question = require_text(req.question, "question")
            limit = require_limit(req.limit, "limit", QA_LIMIT_BOUNDS)
            threshold = require_threshold(req.score_threshold, "score_threshold")
        except ValidationError as ex:
            return Result.failure(ex)

        try:
            vector = await asyncio.to_thread(self.embedding.embed_query, question)
        except DomainError as ex:
            return Result.failure(ex)
        except Exception as ex:
            return Result.failure(EmbeddingError(f"embedding failed: {ex}"))

        pushed = req.filters if self.index.supports_filtered_search else None
        fetch = limit
        if pushed is None and not req.filters.is_empty():
            fetch = limit * POST_FILTER_OVERSAMPLE
        try:
            candidates = await self.index.search_qa(
                vector, fetch, filters=pushed, score_threshold=threshold
            )
        except DomainError as ex:
            logger.warning("qa search failed", error=str(ex), error_type=type(ex).__name__)
            return Result.failure(ex)

        if pushed is None:
            candidates = apply_filters(candidates, req.filters)
        matched = select_matches(candidates, threshold, limit)

        logger.info(
            "qa search completed",
            question_len=len(question),
            candidates=len(candidates),
            results=len(matched),
            threshold=threshold,
        )
        return Result.success(
            QAResponse(
                total_results=len(matched),
                results=matched,
                filters_applied=req.filters.as_dict() or None,
            )
        )


def select_matches(candidates: list[MatchedQA], threshold: float, limit: int) -> list[MatchedQA]:
    """Drop scores below threshold, order by descending score (ties by qa_id), cut to limit."""
    kept = [m for m in candidates if m.score >= threshold]
    kept.sort(key=lambda m: (-m.score, m.qa.qa_id))
    return kept[:limit]
