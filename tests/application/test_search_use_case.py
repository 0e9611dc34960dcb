"""Tests for SearchDecisions (validation, fusion, degradation labels)."""

import pytest

from legal_search.application.services.retriever import CandidateRetriever
from legal_search.application.use_cases.search_decisions import SearchDecisions
from legal_search.domain.errors import IndexUnavailable, InvalidLimit, InvalidQuery
from legal_search.domain.models import Filters, RrfRanking, SearchQuery, SinglePathRanking

from conftest import FakeEmbedding, FakeIndex, FakeSparseEncoder, RecordingTelemetry, make_candidate


def path(name, *ids):
    return [make_candidate(id_, rank, name) for rank, id_ in enumerate(ids, start=1)]


@pytest.fixture
def index():
    return FakeIndex(dense=path("dense", "A", "B", "C"), sparse=path("sparse", "B", "A"))


def make_use_case(index, telemetry=None, timeout_s=3.0, **kwargs):
    retriever = CandidateRetriever(
        FakeEmbedding(), FakeSparseEncoder(), index, subquery_timeout_s=timeout_s
    )
    return SearchDecisions(retriever, telemetry=telemetry, **kwargs)


class TestSearchDecisions:
    async def test_hybrid_search_fuses_both_paths(self, index) -> None:
        result = await make_use_case(index).execute(SearchQuery("فسخ عقد", limit=10))

        assert result.ok
        response = result.value
        assert response.search_method == "hybrid"
        # A and B tie on 1/61 + 1/62; A wins on the better dense rank
        assert [r.chunk.id for r in response.results] == ["A", "B", "C"]
        assert response.total == 3
        assert all(isinstance(r.ranking, RrfRanking) for r in response.results)
        assert response.results[0].score == pytest.approx(1 / 61 + 1 / 62)
        assert response.results[1].score == pytest.approx(response.results[0].score)

    async def test_non_hybrid_passes_dense_through(self, index) -> None:
        result = await make_use_case(index).execute(SearchQuery("q", limit=2, use_hybrid=False))

        response = result.value
        assert response.search_method == "dense-only"
        assert [r.chunk.id for r in response.results] == ["A", "B"]
        assert response.total == 3
        for r in response.results:
            assert isinstance(r.ranking, SinglePathRanking)
            assert r.ranking.fusion_method is None
        assert index.count("sparse") == 0

    async def test_sparse_timeout_is_labelled_dense_only(self, index) -> None:
        index.delays = {"sparse": 0.5}

        result = await make_use_case(index, timeout_s=0.1).execute(SearchQuery("q"))

        assert result.ok
        response = result.value
        assert response.search_method == "dense-only"
        assert [r.chunk.id for r in response.results] == ["A", "B", "C"]
        assert all(r.ranking.fusion_method == "dense-only" for r in response.results)

    async def test_dense_failure_is_labelled_sparse_only(self, index) -> None:
        index.errors = {"dense": IndexUnavailable("down")}

        response = (await make_use_case(index).execute(SearchQuery("q"))).value

        assert response.search_method == "sparse-only"
        assert [r.chunk.id for r in response.results] == ["B", "A"]

    async def test_all_paths_failing_returns_failure(self, index) -> None:
        index.errors = {"dense": IndexUnavailable("down"), "sparse": IndexUnavailable("down")}

        result = await make_use_case(index).execute(SearchQuery("q"))

        assert not result.ok
        assert isinstance(result.error, IndexUnavailable)

    @pytest.mark.parametrize("limit", [0, 101, 500])
    async def test_invalid_limit_makes_no_backend_call(self, index, limit) -> None:
        result = await make_use_case(index).execute(SearchQuery("q", limit=limit))

        assert isinstance(result.error, InvalidLimit)
        assert result.error.field == "limit"
        assert index.calls == []

    async def test_blank_query_makes_no_backend_call(self, index) -> None:
        result = await make_use_case(index).execute(SearchQuery("   "))

        assert isinstance(result.error, InvalidQuery)
        assert index.calls == []

    async def test_total_counts_candidates_before_truncation(self, index) -> None:
        response = (await make_use_case(index).execute(SearchQuery("q", limit=1))).value

        assert len(response.results) == 1
        assert response.total == 3

    async def test_total_does_not_depend_on_page_size(self) -> None:
        index = FakeIndex(
            dense=path("dense", *"ABCDEF"), sparse=path("sparse", *"FEDCBA")
        )
        use_case = make_use_case(index)

        totals = {
            limit: (await use_case.execute(SearchQuery("q", limit=limit))).value.total
            for limit in (1, 2, 10)
        }

        assert totals == {1: 6, 2: 6, 10: 6}

    async def test_each_path_fetches_the_candidate_pool(self, index) -> None:
        await make_use_case(index, candidate_pool=20).execute(SearchQuery("q", limit=5))

        assert {limit for _, limit, _ in index.calls} == {20}

    async def test_candidate_pool_never_below_limit(self, index) -> None:
        await make_use_case(index, candidate_pool=5).execute(SearchQuery("q", limit=30))

        assert {limit for _, limit, _ in index.calls} == {30}

    async def test_filters_narrow_results(self) -> None:
        index = FakeIndex(
            dense=[
                make_candidate("A", 1, "dense", city="جدة"),
                make_candidate("B", 2, "dense", city="الرياض"),
            ],
            sparse=[make_candidate("A", 1, "sparse", city="جدة")],
        )

        query = SearchQuery("q", filters=Filters(city="الرياض"))
        response = (await make_use_case(index).execute(query)).value

        assert [r.chunk.id for r in response.results] == ["B"]
        assert response.results[0].ranking.dense.rank == 1

    async def test_records_latency_and_degradation(self, index) -> None:
        telemetry = RecordingTelemetry()
        index.errors = {"sparse": IndexUnavailable("down")}

        await make_use_case(index, telemetry=telemetry).execute(SearchQuery("q"))

        assert [name for name, _, _ in telemetry.observations] == ["legal_search.search.latency_ms"]
        assert telemetry.counters == [("legal_search.search.degraded", {"method": "dense-only"})]
