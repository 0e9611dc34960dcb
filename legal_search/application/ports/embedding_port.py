from typing import Protocol, runtime_checkable

from legal_search.domain.types import Vector


@runtime_checkable
class EmbeddingPort(Protocol):
    """Dense query embedding; `dimension` must match the index configuration."""

    dimension: int

    def embed_query(self, text: str) -> Vector: ...
