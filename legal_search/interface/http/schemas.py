"""Wire models for the legal-search HTTP API.

Field names are the contract the front-end consumes; the CLI prints the same
bodies.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from legal_search.application.dto.search_dto import (
    DiscoveryData,
    QAResponse,
    SearchResponse,
    SynthesisResponse,
)
from legal_search.domain.models import FacetItem, FusedResult, MatchedQA, RrfRanking


class WireModel(BaseModel):
    # optional top-level keys dropped from the body when unset
    omit_when_none: ClassVar[tuple[str, ...]] = ()

    def to_body(self) -> dict[str, Any]:
        body = self.model_dump(mode="json")
        for key in self.omit_when_none:
            if body.get(key) is None:
                body.pop(key, None)
        return body


# ===== Requests =====


class SearchRequestModel(BaseModel):
    """Request model for /api/v1/search and /api/v1/search/synthesis.

    Range checks happen in the use cases so every layer reports the same field errors.
    """

    query_text: str
    limit: int = 10
    filters: dict[str, str | None] | None = None
    use_hybrid: bool = True


class QARequestModel(BaseModel):
    question: str
    filters: dict[str, str | None] | None = None
    limit: int = 10
    score_threshold: float = 0.7


# ===== Responses =====


class SearchResultModel(BaseModel):
    id: str | int
    score: float
    chunk_id: str
    text: str
    section: str
    decision_id: str
    legal_category: str
    quality_score: float
    entities: dict[str, Any] = Field(default_factory=dict)
    court_type: int | str | None = None
    city: str
    case_number: str
    ai_descriptive_title: str
    ai_short_description: str
    ai_main_topics: list[str]
    ai_key_entities: list[str]
    ai_legal_areas: list[str]
    ai_court_level: str
    ai_decision_type: str
    ai_legal_principles: list[str]
    ai_cited_laws: list[str]
    has_qa_pairs: bool
    qa_count: int
    metadata: dict[str, Any] = Field(default_factory=dict)
    # hybrid ranking details; unset when not applicable
    rrf_score: float | None = None
    dense_rank: int | None = None
    sparse_rank: int | None = None
    dense_score: float | None = None
    sparse_score: float | None = None
    fusion_method: str | None = None

    @classmethod
    def from_result(cls, r: FusedResult) -> SearchResultModel:
        c = r.chunk
        d = c.display
        ranking: dict[str, Any] = {}
        if isinstance(r.ranking, RrfRanking):
            ranking["rrf_score"] = r.ranking.rrf_score
            ranking["fusion_method"] = r.ranking.fusion_method
            if r.ranking.dense is not None:
                ranking["dense_rank"] = r.ranking.dense.rank
                ranking["dense_score"] = r.ranking.dense.score
            if r.ranking.sparse is not None:
                ranking["sparse_rank"] = r.ranking.sparse.rank
                ranking["sparse_score"] = r.ranking.sparse.score
        else:
            ranking[f"{r.ranking.path}_rank"] = r.ranking.hit.rank
            ranking[f"{r.ranking.path}_score"] = r.ranking.hit.score
            ranking["fusion_method"] = r.ranking.fusion_method
        return cls(
            id=c.id,
            score=r.score,
            chunk_id=c.chunk_id,
            text=c.text,
            section=c.section,
            decision_id=c.decision_id,
            legal_category=c.legal_category,
            quality_score=c.quality_score,
            entities=plain(c.entities),
            court_type=_court_type(c.court_type),
            city=c.city,
            case_number=c.case_number,
            ai_descriptive_title=d.title,
            ai_short_description=d.description,
            ai_main_topics=list(d.main_topics),
            ai_key_entities=list(d.key_entities),
            ai_legal_areas=list(d.legal_areas),
            ai_court_level=d.court_level,
            ai_decision_type=d.decision_type,
            ai_legal_principles=list(d.legal_principles),
            ai_cited_laws=list(d.cited_laws),
            has_qa_pairs=c.has_qa_pairs,
            qa_count=c.qa_count,
            metadata=plain(c.metadata),
            **ranking,
        )


class SearchResponseModel(WireModel):
    results: list[SearchResultModel]
    total: int

    @classmethod
    def from_dto(cls, resp: SearchResponse) -> SearchResponseModel:
        return cls(
            results=[SearchResultModel.from_result(r) for r in resp.results], total=resp.total
        )


class MatchedQAModel(BaseModel):
    qa_id: str
    question: str
    answer: str
    legal_principle: str
    confidence: float | None = None
    score: float
    decision_id: str
    case_number: str
    court_name: str
    city: str
    court_type: str
    content_type: str | None = None
    legal_category: str
    question_type: str
    embedding_model: str

    @classmethod
    def from_match(cls, m: MatchedQA) -> MatchedQAModel:
        qa = m.qa
        return cls(
            qa_id=qa.qa_id,
            question=qa.question,
            answer=qa.answer,
            legal_principle=qa.legal_principle,
            confidence=qa.confidence,
            score=m.score,
            decision_id=qa.decision_id,
            case_number=qa.case_number,
            court_name=qa.court_name,
            city=qa.city,
            court_type=qa.court_type,
            content_type=qa.content_type,
            legal_category=qa.legal_category,
            question_type=qa.question_type,
            embedding_model=qa.embedding_model,
        )


class QAResponseModel(WireModel):
    omit_when_none: ClassVar[tuple[str, ...]] = ("filters_applied",)

    total_results: int
    results: list[MatchedQAModel]
    filters_applied: dict[str, str] | None = None

    @classmethod
    def from_dto(cls, resp: QAResponse) -> QAResponseModel:
        return cls(
            total_results=resp.total_results,
            results=[MatchedQAModel.from_match(m) for m in resp.results],
            filters_applied=resp.filters_applied,
        )


class SynthesisResponseModel(WireModel):
    omit_when_none: ClassVar[tuple[str, ...]] = ("error",)

    query: str
    total_results: int
    search_method: str
    context_chunks: list[dict[str, Any]]
    sources: list[dict[str, Any]]
    metadata_summary: dict[str, Any]
    error: str | None = None

    @classmethod
    def from_dto(cls, resp: SynthesisResponse) -> SynthesisResponseModel:
        return cls(
            query=resp.query,
            total_results=resp.total_results,
            search_method=resp.search_method,
            context_chunks=[plain(c) for c in resp.context_chunks],
            sources=[plain(s) for s in resp.sources],
            metadata_summary=plain(resp.metadata_summary),
            error=resp.error,
        )


class FacetItemModel(BaseModel):
    value: str
    count: int


class DiscoveryModel(WireModel):
    courts: list[FacetItemModel]
    cities: list[FacetItemModel]
    court_types: list[FacetItemModel]
    legal_categories: list[FacetItemModel]
    content_types: list[FacetItemModel]

    @classmethod
    def from_dto(cls, data: DiscoveryData) -> DiscoveryModel:
        def items(facets: list[FacetItem]) -> list[FacetItemModel]:
            return [FacetItemModel(value=f.value, count=f.count) for f in facets]

        return cls(
            courts=items(data.courts),
            cities=items(data.cities),
            court_types=items(data.court_types),
            legal_categories=items(data.legal_categories),
            content_types=items(data.content_types),
        )


def plain(value: Any) -> Any:
    """Metadata values as JSON-ready builtins (tuples become lists)."""
    if isinstance(value, Mapping):
        return {str(k): plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain(v) for v in value]
    return value


def _court_type(value: str | int) -> int | str | None:
    if isinstance(value, int):
        return value
    if value == "":
        return None
    return int(value) if value.lstrip("-").isdigit() else value
