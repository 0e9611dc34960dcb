"""Tests for SynthesizeSearch (partial-failure contract)."""

import pytest

from legal_search.application.services.retriever import CandidateRetriever
from legal_search.application.use_cases import synthesize_search
from legal_search.application.use_cases.search_decisions import SearchDecisions
from legal_search.application.use_cases.synthesize_search import SynthesizeSearch
from legal_search.domain.errors import IndexUnavailable, InvalidLimit
from legal_search.domain.models import SearchQuery

from conftest import FakeEmbedding, FakeIndex, FakeSparseEncoder, make_candidate


@pytest.fixture
def index():
    return FakeIndex(
        dense=[
            make_candidate("1", 1, "dense", decision_id="d1", legal_category="labor"),
            make_candidate("2", 2, "dense", decision_id="d1", legal_category="labor"),
            make_candidate("3", 3, "dense", decision_id="d2", legal_category="commercial"),
        ],
        sparse=[make_candidate("3", 1, "sparse", decision_id="d2", legal_category="commercial")],
    )


def make_use_case(index, top_n=10):
    retriever = CandidateRetriever(FakeEmbedding(), FakeSparseEncoder(), index)
    return SynthesizeSearch(SearchDecisions(retriever), top_n=top_n)


async def test_aggregates_top_results(index):
    result = await make_use_case(index).execute(SearchQuery("نزاع عمالي"))

    assert result.ok
    response = result.value
    assert response.error is None
    assert response.query == "نزاع عمالي"
    assert response.search_method == "hybrid"
    assert response.total_results == 3
    assert len(response.context_chunks) == 3
    assert {s["decision_id"]: s["chunk_count"] for s in response.sources} == {"d1": 2, "d2": 1}
    assert response.metadata_summary["unique_decisions"] == 2


async def test_top_n_limits_context(index):
    response = (await make_use_case(index, top_n=1).execute(SearchQuery("q"))).value

    assert len(response.context_chunks) == 1
    assert response.total_results == 3


async def test_validation_errors_are_not_swallowed(index):
    result = await make_use_case(index).execute(SearchQuery("q", limit=0))

    assert isinstance(result.error, InvalidLimit)


async def test_search_failure_is_reported_in_error_field(index):
    index.errors = {"dense": IndexUnavailable("down"), "sparse": IndexUnavailable("down")}

    result = await make_use_case(index).execute(SearchQuery("q"))

    assert result.ok
    response = result.value
    assert response.error == "down"
    assert response.context_chunks == []
    assert response.sources == []
    assert response.total_results == 0


async def test_aggregation_failure_is_reported_in_error_field(index, monkeypatch):
    def broken(results, top_n):
        raise KeyError("title")

    monkeypatch.setattr(synthesize_search, "aggregate", broken)

    result = await make_use_case(index).execute(SearchQuery("q"))

    assert result.ok
    assert result.value.error.startswith("aggregation failed")
    assert result.value.search_method == "hybrid"
    assert result.value.metadata_summary == {}
