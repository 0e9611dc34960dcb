"""Index payload <-> domain model mapping shared by the vector index adapters.

Payload keys are the ones written by the ingestion pipeline; AI display
fields are stored with an `ai_` prefix.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from legal_search.domain.models import Chunk, ChunkDisplay, QAPair
from legal_search.domain.types import coerce_metadata_map


def chunk_from_payload(point_id: str | int, payload: Mapping[str, Any] | None) -> Chunk:
    p = payload or {}
    return Chunk(
        id=point_id,
        chunk_id=_text(p.get("chunk_id")) or str(point_id),
        decision_id=_text(p.get("decision_id")),
        text=_text(p.get("text")),
        section=_text(p.get("section")),
        legal_category=_text(p.get("legal_category")),
        quality_score=_number(p.get("quality_score")),
        entities=coerce_metadata_map(p.get("entities")),
        court_type=_court_type(p.get("court_type")),
        city=_text(p.get("city")),
        case_number=_text(p.get("case_number")),
        court_name=_text(p.get("court_name")),
        content_type=_text(p.get("content_type")),
        display=ChunkDisplay(
            title=_text(p.get("ai_descriptive_title")),
            description=_text(p.get("ai_short_description")),
            main_topics=_strings(p.get("ai_main_topics")),
            key_entities=_strings(p.get("ai_key_entities")),
            legal_areas=_strings(p.get("ai_legal_areas")),
            court_level=_text(p.get("ai_court_level")),
            decision_type=_text(p.get("ai_decision_type")),
            legal_principles=_strings(p.get("ai_legal_principles")),
            cited_laws=_strings(p.get("ai_cited_laws")),
        ),
        has_qa_pairs=bool(p.get("has_qa_pairs", False)),
        qa_count=int(_number(p.get("qa_count"))),
        metadata=coerce_metadata_map(p.get("metadata")),
    )


def qa_from_payload(point_id: str | int, payload: Mapping[str, Any] | None) -> QAPair:
    p = payload or {}
    confidence = p.get("confidence")
    return QAPair(
        qa_id=_text(p.get("qa_id")) or str(point_id),
        question=_text(p.get("question")),
        answer=_text(p.get("answer")),
        decision_id=_text(p.get("decision_id")),
        legal_principle=_text(p.get("legal_principle")),
        confidence=None if confidence is None else min(max(float(confidence), 0.0), 1.0),
        case_number=_text(p.get("case_number")),
        court_name=_text(p.get("court_name")),
        city=_text(p.get("city")),
        court_type=_text(p.get("court_type")),
        content_type=p.get("content_type") or None,
        legal_category=_text(p.get("legal_category")),
        question_type=_text(p.get("question_type")),
        embedding_model=_text(p.get("embedding_model")),
    )


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _court_type(value: Any) -> str | int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return _text(value)


def _strings(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    return tuple(str(v) for v in value if v is not None)
