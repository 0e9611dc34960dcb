from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


@dataclass(frozen=True)
class Result(Generic[T, E]):
    ok: bool
    value: T | None = None
    error: E | None = None

    @staticmethod
    def success(v: T) -> "Result[T, E]":
        return Result(ok=True, value=v)

    @staticmethod
    def failure(e: E) -> "Result[T, E]":
        return Result(ok=False, error=e)


Vector = tuple[float, ...]  # 1024-d for e5; dimension is validated by the embedding adapter
Score = float

# Free-form payload values (entities, metadata). Nested mappings and lists are
# allowed; anything else is rejected by `coerce_metadata`.
MetadataValue = Union[str, int, float, bool, None, "MetadataMap", "MetadataList"]
MetadataMap = Mapping[str, MetadataValue]
MetadataList = tuple[MetadataValue, ...]


@dataclass(frozen=True)
class SparseVector:
    """Sparse term-weight vector: parallel index/value tuples, indices ascending."""

    indices: tuple[int, ...]
    values: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.indices) != len(self.values):
            raise ValueError("indices and values must have the same length")

    def is_empty(self) -> bool:
        return not self.indices


def coerce_metadata(raw: object) -> MetadataValue:
    """Convert an arbitrary decoded payload value into a `MetadataValue`.

    Mappings keep their keys sorted so serialization is deterministic; lists
    become tuples. Unsupported objects are rendered with `str`.
    """
    if raw is None or isinstance(raw, (str, bool, int, float)):
        return raw
    if isinstance(raw, Mapping):
        return {str(k): coerce_metadata(raw[k]) for k in sorted(raw, key=str)}
    if isinstance(raw, (list, tuple)):
        return tuple(coerce_metadata(v) for v in raw)
    return str(raw)


def coerce_metadata_map(raw: object) -> MetadataMap:
    if not isinstance(raw, Mapping):
        return {}
    value = coerce_metadata(raw)
    assert isinstance(value, Mapping)
    return value
