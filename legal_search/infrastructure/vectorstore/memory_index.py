"""In-process brute-force vector index over numpy arrays.

Used for local development and tests. It has no filtered search: filters are
applied after the top-k cut, so callers post-filter the same way they would
against any index without payload filtering.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, Literal

import numpy as np
import structlog

from legal_search.application.ports import VectorIndexPort
from legal_search.domain.errors import EmbeddingError, IndexUnavailable
from legal_search.domain.models import Chunk, Filters, MatchedQA, QAPair, ScoredCandidate
from legal_search.domain.services.filtering import apply_filters
from legal_search.domain.types import SparseVector, Vector
from legal_search.infrastructure.vectorstore.payloads import chunk_from_payload, qa_from_payload

logger = structlog.get_logger(__name__)

FacetSource = Literal["qa", "chunks"]


class MemoryVectorIndex(VectorIndexPort):
    supports_filtered_search = False

    def __init__(self, dimension: int, facet_source: FacetSource = "qa") -> None:
        self.dimension = dimension
        self.facet_source = facet_source
        self._chunks: list[Chunk] = []
        self._dense = np.zeros((0, dimension), dtype=np.float32)
        self._sparse: list[dict[int, float]] = []
        self._qa: list[QAPair] = []
        self._qa_dense = np.zeros((0, dimension), dtype=np.float32)

    # ===== Loading =====

    def add_chunks(self, items: Iterable[tuple[Chunk, Vector, SparseVector]]) -> None:
        rows: list[Vector] = []
        for chunk, dense, sparse in items:
            self._chunks.append(chunk)
            self._sparse.append(dict(zip(sparse.indices, sparse.values, strict=True)))
            rows.append(dense)
        if rows:
            self._dense = np.vstack([self._dense, self._normalized(rows)])

    def add_qa_pairs(self, items: Iterable[tuple[QAPair, Vector]]) -> None:
        rows: list[Vector] = []
        for qa, dense in items:
            self._qa.append(qa)
            rows.append(dense)
        if rows:
            self._qa_dense = np.vstack([self._qa_dense, self._normalized(rows)])

    def load_jsonl(self, path: str | Path) -> None:
        """Load points exported as JSON lines.

        Each line: {"collection": "chunks"|"qa", "id", "payload", "dense",
        "sparse": {"indices", "values"}} ("sparse" for chunks only).
        """
        chunks: list[tuple[Chunk, Vector, SparseVector]] = []
        qa_pairs: list[tuple[QAPair, Vector]] = []
        try:
            with open(path, encoding="utf-8") as f:
                for line in f:
                    if not line.strip():
                        continue
                    record = json.loads(line)
                    dense = tuple(float(x) for x in record["dense"])
                    if record.get("collection", "chunks") == "qa":
                        qa = qa_from_payload(record["id"], record.get("payload"))
                        qa_pairs.append((qa, dense))
                        continue
                    raw_sparse = record.get("sparse") or {}
                    sparse = SparseVector(
                        indices=tuple(int(i) for i in raw_sparse.get("indices", ())),
                        values=tuple(float(v) for v in raw_sparse.get("values", ())),
                    )
                    chunk = chunk_from_payload(record["id"], record.get("payload"))
                    chunks.append((chunk, dense, sparse))
        except (OSError, ValueError, KeyError) as ex:
            raise IndexUnavailable(f"failed to load memory index from {path}: {ex}") from ex
        self.add_chunks(chunks)
        self.add_qa_pairs(qa_pairs)
        logger.info(
            "memory index loaded", path=str(path), chunks=len(chunks), qa_pairs=len(qa_pairs)
        )

    # ===== VectorIndexPort =====

    async def search_dense(
        self, vector: Vector, limit: int, filters: Filters | None = None
    ) -> list[ScoredCandidate]:
        scores = self._dense @ self._query(vector)
        hits = [
            ScoredCandidate(chunk=self._chunks[i], score=float(scores[i]), rank=rank, path="dense")
            for rank, i in enumerate(_top(scores, limit), start=1)
        ]
        return apply_filters(hits, filters or Filters())

    async def search_sparse(
        self, vector: SparseVector, limit: int, filters: Filters | None = None
    ) -> list[ScoredCandidate]:
        query = dict(zip(vector.indices, vector.values, strict=True))
        scores = np.array(
            [sum(w * doc.get(i, 0.0) for i, w in query.items()) for doc in self._sparse],
            dtype=np.float32,
        )
        order = [i for i in _top(scores, limit) if scores[i] > 0.0]
        hits = [
            ScoredCandidate(chunk=self._chunks[i], score=float(scores[i]), rank=rank, path="sparse")
            for rank, i in enumerate(order, start=1)
        ]
        return apply_filters(hits, filters or Filters())

    async def search_qa(
        self,
        vector: Vector,
        limit: int,
        filters: Filters | None = None,
        score_threshold: float | None = None,
    ) -> list[MatchedQA]:
        scores = self._qa_dense @ self._query(vector)
        hits = [MatchedQA(qa=self._qa[i], score=float(scores[i])) for i in _top(scores, limit)]
        if score_threshold is not None:
            hits = [h for h in hits if h.score >= score_threshold]
        return apply_filters(hits, filters or Filters())

    async def count_payload_values(self, keys: Sequence[str]) -> dict[str, dict[str, int]]:
        items: Sequence[Chunk | QAPair] = self._qa if self.facet_source == "qa" else self._chunks
        counts: dict[str, Counter[str]] = {key: Counter() for key in keys}
        for item in items:
            for key in keys:
                value = item.filter_value(key)
                if value is not None:
                    counts[key][value] += 1
        return {key: dict(counter) for key, counter in counts.items()}

    async def close(self) -> None:
        return None

    # ===== Helpers =====

    def _query(self, vector: Vector) -> Any:
        if len(vector) != self.dimension:
            raise EmbeddingError(
                f"query dimension {len(vector)} does not match index dimension {self.dimension}"
            )
        q = np.asarray(vector, dtype=np.float32)
        norm = float(np.linalg.norm(q))
        return q / norm if norm > 0 else q

    def _normalized(self, rows: list[Vector]) -> Any:
        arr = np.asarray(rows, dtype=np.float32)
        if arr.ndim != 2 or arr.shape[1] != self.dimension:
            raise EmbeddingError(f"expected {self.dimension}-d vectors, got shape {arr.shape}")
        norms = np.linalg.norm(arr, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return arr / norms


def _top(scores: Any, limit: int) -> list[int]:
    """Indices of the `limit` highest scores; equal scores keep insertion order."""
    if limit <= 0 or len(scores) == 0:
        return []
    order = np.argsort(-scores, kind="stable")
    return [int(i) for i in order[:limit]]
