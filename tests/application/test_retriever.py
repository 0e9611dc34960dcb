"""Tests for CandidateRetriever (concurrent paths, timeouts, filter placement)."""

import asyncio
import time

import pytest

from legal_search.application.services.retriever import CandidateRetriever
from legal_search.domain.errors import EmbeddingError, IndexUnavailable, InvalidQuery
from legal_search.domain.models import Filters

from conftest import FakeEmbedding, FakeIndex, FakeSparseEncoder, make_candidate


def chunks(path, *specs):
    return [
        make_candidate(id_, rank, path, **fields) for rank, (id_, fields) in enumerate(specs, 1)
    ]


@pytest.fixture
def index():
    return FakeIndex(
        dense=chunks(
            "dense",
            ("A", {"city": "الرياض"}),
            ("B", {"city": "جدة"}),
            ("C", {"city": "الرياض"}),
        ),
        sparse=chunks("sparse", ("B", {"city": "جدة"}), ("A", {"city": "الرياض"})),
    )


def make_retriever(index, embedding=None, sparse=None, timeout_s=3.0):
    return CandidateRetriever(
        embedding or FakeEmbedding(),
        sparse or FakeSparseEncoder(),
        index,
        subquery_timeout_s=timeout_s,
    )


async def test_hybrid_returns_both_paths(index):
    outcome = await make_retriever(index).retrieve("عقد العمل", 10)

    assert outcome.hybrid
    assert [c.chunk.id for c in outcome.dense] == ["A", "B", "C"]
    assert [c.chunk.id for c in outcome.sparse] == ["B", "A"]
    assert outcome.failures == ()


async def test_paths_run_concurrently(index):
    index.delays = {"dense": 0.2, "sparse": 0.2}

    start = time.perf_counter()
    await make_retriever(index).retrieve("query", 10)
    elapsed = time.perf_counter() - start

    assert elapsed < 0.35


async def test_sparse_timeout_degrades_to_dense(index):
    index.delays = {"sparse": 0.5}

    outcome = await make_retriever(index, timeout_s=0.1).retrieve("query", 10)

    assert [c.chunk.id for c in outcome.dense] == ["A", "B", "C"]
    assert outcome.sparse == []
    assert outcome.failed("sparse")
    assert not outcome.failed("dense")
    assert "timed out" in outcome.failures[0].reason


async def test_dense_failure_degrades_to_sparse(index):
    index.errors = {"dense": IndexUnavailable("dense down")}

    outcome = await make_retriever(index).retrieve("query", 10)

    assert outcome.failed("dense")
    assert [c.chunk.id for c in outcome.sparse] == ["B", "A"]


async def test_both_paths_failing_raises(index):
    index.errors = {
        "dense": IndexUnavailable("dense down"),
        "sparse": IndexUnavailable("sparse down"),
    }

    with pytest.raises(IndexUnavailable, match="dense down"):
        await make_retriever(index).retrieve("query", 10)


async def test_non_domain_errors_propagate(index):
    index.errors = {"sparse": RuntimeError("bug")}

    with pytest.raises(RuntimeError, match="bug"):
        await make_retriever(index).retrieve("query", 10)


async def test_non_hybrid_skips_sparse(index):
    sparse = FakeSparseEncoder()

    outcome = await make_retriever(index, sparse=sparse).retrieve("query", 10, hybrid=False)

    assert not outcome.hybrid
    assert outcome.sparse == []
    assert sparse.calls == []
    assert index.count("sparse") == 0


async def test_non_hybrid_embedding_failure_raises(index):
    embedding = FakeEmbedding(error=EmbeddingError("model missing"))

    with pytest.raises(EmbeddingError):
        await make_retriever(index, embedding=embedding).retrieve("query", 10, hybrid=False)


async def test_limit_is_clamped_to_one_hundred(index):
    await make_retriever(index).retrieve("query", 500)

    assert {limit for _, limit, _ in index.calls} == {100}


async def test_empty_query_is_rejected_before_backend_calls(index):
    with pytest.raises(InvalidQuery):
        await make_retriever(index).retrieve("   ", 10)
    assert index.calls == []


async def test_post_filter_reranks_when_index_cannot_filter(index):
    outcome = await make_retriever(index).retrieve("query", 10, filters=Filters(city="الرياض"))

    assert [c.chunk.id for c in outcome.dense] == ["A", "C"]
    assert [c.rank for c in outcome.dense] == [1, 2]
    assert [c.chunk.id for c in outcome.sparse] == ["A"]
    assert all(f is None for _, _, f in index.calls)


async def test_filters_are_pushed_down_when_supported(index):
    index.supports_filtered_search = True
    filters = Filters(city="الرياض")

    pushed = await make_retriever(index).retrieve("query", 10, filters=filters)

    assert all(f == filters for _, _, f in index.calls)
    assert [c.chunk.id for c in pushed.dense] == ["A", "C"]
    assert [c.chunk.id for c in pushed.sparse] == ["A"]


async def test_empty_sparse_vector_skips_sparse_search(index):
    outcome = await make_retriever(index, sparse=FakeSparseEncoder(empty=True)).retrieve("في", 10)

    assert outcome.sparse == []
    assert not outcome.failures
    assert index.count("sparse") == 0


async def test_slow_embedding_counts_against_dense_timeout(index):
    embedding = FakeEmbedding(delay_s=0.3)

    outcome = await make_retriever(index, embedding=embedding, timeout_s=0.05).retrieve("q", 10)
    # let the worker thread finish before the loop closes
    await asyncio.sleep(0.3)

    assert outcome.failed("dense")
    assert [c.chunk.id for c in outcome.sparse] == ["B", "A"]
