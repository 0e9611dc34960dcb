"""Shared fakes for port-level tests (no network, no models)."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from legal_search.application.ports import ClockPort
from legal_search.domain.models import (
    Chunk,
    ChunkDisplay,
    Filters,
    MatchedQA,
    QAPair,
    RetrievalPath,
    ScoredCandidate,
)
from legal_search.domain.services.filtering import apply_filters
from legal_search.domain.types import SparseVector, Vector


def make_chunk(id_: str | int, **fields: Any) -> Chunk:
    defaults: dict[str, Any] = {
        "chunk_id": f"chunk-{id_}",
        "decision_id": f"dec-{id_}",
        "text": f"Text for {id_}",
        "display": ChunkDisplay(title=f"Title {id_}"),
    }
    defaults.update(fields)
    return Chunk(id=id_, **defaults)


def make_candidate(
    id_: str | int,
    rank: int,
    path: RetrievalPath = "dense",
    score: float | None = None,
    **fields: Any,
) -> ScoredCandidate:
    return ScoredCandidate(
        chunk=make_chunk(id_, **fields),
        score=score if score is not None else round(1.0 - rank / 100, 4),
        rank=rank,
        path=path,
    )


def make_qa(qa_id: str, score: float, **fields: Any) -> MatchedQA:
    defaults: dict[str, Any] = {
        "question": f"Question {qa_id}?",
        "answer": f"Answer {qa_id}.",
        "decision_id": f"dec-{qa_id}",
    }
    defaults.update(fields)
    return MatchedQA(qa=QAPair(qa_id=qa_id, **defaults), score=score)


class FakeEmbedding:
    dimension = 4

    def __init__(self, delay_s: float = 0.0, error: Exception | None = None) -> None:
        self.delay_s = delay_s
        self.error = error
        self.calls: list[str] = []

    def embed_query(self, text: str) -> Vector:
        self.calls.append(text)
        if self.delay_s:
            time.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return (1.0, 0.0, 0.0, 0.0)


class FakeSparseEncoder:
    def __init__(self, empty: bool = False) -> None:
        self.empty = empty
        self.calls: list[str] = []

    def encode_query(self, text: str) -> SparseVector:
        self.calls.append(text)
        if self.empty:
            return SparseVector(indices=(), values=())
        return SparseVector(indices=(7,), values=(1.0,))


class FakeIndex:
    """Canned per-path results with optional delays and failures.

    With supports_filtered_search=True, filters are applied like a payload
    filter before the limit cut.
    """

    def __init__(
        self,
        dense: Sequence[ScoredCandidate] = (),
        sparse: Sequence[ScoredCandidate] = (),
        qa: Sequence[MatchedQA] = (),
        counts: dict[str, dict[str, int]] | None = None,
        supports_filtered_search: bool = False,
    ) -> None:
        self.dense = list(dense)
        self.sparse = list(sparse)
        self.qa = list(qa)
        self.counts = counts or {}
        self.supports_filtered_search = supports_filtered_search
        self.delays: dict[str, float] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, int, Filters | None]] = []
        self.closed = False

    async def _serve(self, op: str, items: list[Any], limit: int, filters: Filters | None) -> Any:
        self.calls.append((op, limit, filters))
        if op in self.delays:
            await asyncio.sleep(self.delays[op])
        if op in self.errors:
            raise self.errors[op]
        if filters is not None:
            items = apply_filters(items, filters)
        return items[:limit]

    async def search_dense(
        self, vector: Vector, limit: int, filters: Filters | None = None
    ) -> list[ScoredCandidate]:
        return await self._serve("dense", self.dense, limit, filters)

    async def search_sparse(
        self, vector: SparseVector, limit: int, filters: Filters | None = None
    ) -> list[ScoredCandidate]:
        return await self._serve("sparse", self.sparse, limit, filters)

    async def search_qa(
        self,
        vector: Vector,
        limit: int,
        filters: Filters | None = None,
        score_threshold: float | None = None,
    ) -> list[MatchedQA]:
        return await self._serve("qa", self.qa, limit, filters)

    async def count_payload_values(self, keys: Sequence[str]) -> dict[str, dict[str, int]]:
        self.calls.append(("counts", len(keys), None))
        if "counts" in self.delays:
            await asyncio.sleep(self.delays["counts"])
        if "counts" in self.errors:
            raise self.errors["counts"]
        return {key: dict(self.counts.get(key, {})) for key in keys}

    async def close(self) -> None:
        self.closed = True

    def count(self, op: str) -> int:
        return sum(1 for name, _, _ in self.calls if name == op)


class FakeClock(ClockPort):
    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class RecordingTelemetry:
    def __init__(self) -> None:
        self.counters: list[tuple[str, dict[str, Any] | None]] = []
        self.observations: list[tuple[str, float, dict[str, Any] | None]] = []
        self.shut_down = False

    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        self.counters.append((name, tags))

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        self.observations.append((name, value, tags))

    def shutdown(self) -> None:
        self.shut_down = True
