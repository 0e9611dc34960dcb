"""Tests for domain models (Chunk, QAPair, Filters) and metadata coercion."""

import pytest

from legal_search.domain.errors import InvalidFilter
from legal_search.domain.models import (
    FILTER_FIELDS,
    Filters,
    FusedResult,
    PathRank,
    QAPair,
    RrfRanking,
    SinglePathRanking,
)
from legal_search.domain.types import SparseVector, coerce_metadata, coerce_metadata_map

from conftest import make_chunk

def test_chunk_key_is_string_form_of_id():
    assert make_chunk(42).key == "42"
    assert make_chunk("abc").key == "abc"

def test_chunk_filter_value_renders_stored_values():
    chunk = make_chunk("c", court_type=3, city="", court_name="المحكمة التجارية")
    assert chunk.filter_value("court_type") == "3"
    assert chunk.filter_value("city") is None
    assert chunk.filter_value("court_name") == "المحكمة التجارية"

def test_qa_pair_confidence_must_be_in_unit_interval():
    QAPair(qa_id="q", question="?", answer="!", decision_id="d", confidence=1.0)
    with pytest.raises(ValueError):
        QAPair(qa_id="q", question="?", answer="!", decision_id="d", confidence=1.5)

def test_chunk_is_frozen():
    chunk = make_chunk("c")
    with pytest.raises(AttributeError):
        chunk.text = "changed"  # type: ignore[misc]

class TestFilters:
    def test_from_mapping_keeps_non_empty_values(self):
        f = Filters.from_mapping({"city": "الرياض", "court_type": "2", "content_type": ""})
        assert f.as_dict() == {"city": "الرياض", "court_type": "2"}

    def test_none_and_missing_mapping_are_empty(self):
        assert Filters.from_mapping(None).is_empty()
        assert Filters.from_mapping({"city": None}).is_empty()

    def test_unknown_field_is_rejected(self):
        with pytest.raises(InvalidFilter) as exc:
            Filters.from_mapping({"judge": "x"})
        assert exc.value.field == "filters.judge"

    def test_non_string_value_is_rejected(self):
        with pytest.raises(InvalidFilter) as exc:
            Filters.from_mapping({"court_type": 2})
        assert exc.value.field == "filters.court_type"

    def test_as_dict_follows_field_order(self):
        f = Filters.from_mapping({"decision_id": "d1", "court_name": "c"})
        assert list(f.as_dict()) == [n for n in FILTER_FIELDS if n in ("decision_id", "court_name")]

def test_fused_result_distinguishes_hybrid_by_type():
    hybrid = FusedResult(
        chunk=make_chunk("a"),
        score=0.03,
        ranking=RrfRanking(rrf_score=0.03, dense=PathRank(1, 0.9), sparse=None),
    )
    single = FusedResult(
        chunk=make_chunk("a"),
        score=0.9,
        ranking=SinglePathRanking(path="dense", hit=PathRank(1, 0.9)),
    )
    assert hybrid.is_hybrid
    assert not single.is_hybrid

def test_sparse_vector_requires_parallel_arrays():
    assert SparseVector(indices=(), values=()).is_empty()
    with pytest.raises(ValueError):
        SparseVector(indices=(1, 2), values=(1.0,))

def test_coerce_metadata_is_deterministic():
    raw = {"b": [1, {"y": 2, "x": None}], "a": True}
    coerced = coerce_metadata(raw)
    assert list(coerced) == ["a", "b"]  # type: ignore[arg-type]
    assert coerced == {"a": True, "b": (1, {"x": None, "y": 2})}
    assert coerce_metadata(raw) == coerced

def test_coerce_metadata_map_drops_non_mappings():
    assert coerce_metadata_map(["not", "a", "map"]) == {}
    assert coerce_metadata_map({"k": object.__name__}) == {"k": "object"}
