"""Synthesis: aggregate top search results into grounding context.

Partial-failure contract: once the request itself is valid, any search or
aggregation failure is reported through `SynthesisResponse.error` with empty
aggregates instead of an error result.
"""

from __future__ import annotations

import structlog

from legal_search.application.dto.search_dto import SynthesisResponse
from legal_search.application.use_cases.search_decisions import (
    DENSE_ONLY,
    HYBRID,
    SearchDecisions,
)
from legal_search.domain.errors import DomainError, SynthesisFailure, ValidationError
from legal_search.domain.models import SearchQuery
from legal_search.domain.services.aggregation import aggregate
from legal_search.domain.types import Result

logger = structlog.get_logger(__name__)


class SynthesizeSearch:
    def __init__(self, search: SearchDecisions, top_n: int = 10) -> None:
        self.search = search
        self.top_n = top_n

    async def execute(self, query: SearchQuery) -> Result[SynthesisResponse, DomainError]:
        found = await self.search.execute(query)
        if not found.ok:
            assert found.error is not None
            if isinstance(found.error, ValidationError):
                return Result.failure(found.error)
            logger.error("synthesis search failed", error=str(found.error))
            return Result.success(
                SynthesisResponse(
                    query=query.query_text,
                    search_method=HYBRID if query.use_hybrid else DENSE_ONLY,
                    error=str(found.error),
                )
            )

        assert found.value is not None
        response = found.value
        try:
            agg = aggregate(response.results, self.top_n)
        except Exception as ex:
            failure = SynthesisFailure(f"aggregation failed: {ex}")
            logger.error("synthesis aggregation failed", error=str(ex), exc_info=True)
            return Result.success(
                SynthesisResponse(
                    query=query.query_text,
                    search_method=response.search_method,
                    error=str(failure),
                )
            )

        return Result.success(
            SynthesisResponse(
                query=query.query_text,
                total_results=response.total,
                search_method=response.search_method,
                context_chunks=agg.context_chunks,
                sources=agg.sources,
                metadata_summary=agg.metadata_summary,
            )
        )
