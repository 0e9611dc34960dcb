from typing import Protocol, runtime_checkable

from legal_search.domain.types import SparseVector


@runtime_checkable
class SparseEncoderPort(Protocol):
    """Lexical term-weight encoding of query text for the sparse path."""

    def encode_query(self, text: str) -> SparseVector: ...
