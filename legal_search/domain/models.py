# legal_search/domain/models.py
# Domain models must be pure (no I/O, no external libs)
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from legal_search.domain.errors import InvalidFilter
from legal_search.domain.types import MetadataMap

RetrievalPath = Literal["dense", "sparse"]

FILTER_FIELDS: tuple[str, ...] = (
    "court_name",
    "city",
    "court_type",
    "content_type",
    "legal_category",
    "decision_id",
)


@dataclass(frozen=True)
class ChunkDisplay:
    """AI-derived display fields attached to a chunk at enrichment time."""

    title: str = ""
    description: str = ""
    main_topics: tuple[str, ...] = ()
    key_entities: tuple[str, ...] = ()
    legal_areas: tuple[str, ...] = ()
    court_level: str = ""
    decision_type: str = ""
    legal_principles: tuple[str, ...] = ()
    cited_laws: tuple[str, ...] = ()


@dataclass(frozen=True)
class Chunk:
    """
    Immutable unit of indexed decision text.

    - id:          point id in the index (string or integer)
    - chunk_id:    ingestion-assigned chunk identifier
    - court_name / content_type are denormalized so facet filters apply to chunks too
    - entities / metadata are free-form but constrained to `MetadataValue`

    NOTE: Domain layer must not import external libs. Keep types standard-library only.
    """

    id: str | int
    chunk_id: str
    decision_id: str
    text: str
    section: str = ""
    legal_category: str = ""
    quality_score: float = 0.0
    entities: MetadataMap = field(default_factory=dict)
    court_type: str | int = ""
    city: str = ""
    case_number: str = ""
    court_name: str = ""
    content_type: str = ""
    display: ChunkDisplay = field(default_factory=ChunkDisplay)
    has_qa_pairs: bool = False
    qa_count: int = 0
    metadata: MetadataMap = field(default_factory=dict)

    @property
    def key(self) -> str:
        """Stable identity used for fusion and tie-breaking."""
        return str(self.id)

    def filter_value(self, name: str) -> str | None:
        return _render(getattr(self, name, None))


@dataclass(frozen=True)
class QAPair:
    """Question/answer unit derived from exactly one decision."""

    qa_id: str
    question: str
    answer: str
    decision_id: str
    legal_principle: str = ""
    confidence: float | None = None
    case_number: str = ""
    court_name: str = ""
    city: str = ""
    court_type: str = ""
    content_type: str | None = None
    legal_category: str = ""
    question_type: str = ""
    embedding_model: str = ""

    def __post_init__(self) -> None:
        if self.confidence is not None and not (0.0 <= self.confidence <= 1.0):
            raise ValueError("confidence must be between 0 and 1")

    def filter_value(self, name: str) -> str | None:
        return _render(getattr(self, name, None))


def _render(value: object) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


@dataclass(frozen=True)
class Filters:
    """Optional equality constraints, ANDed when present."""

    court_name: str | None = None
    city: str | None = None
    court_type: str | None = None
    content_type: str | None = None
    legal_category: str | None = None
    decision_id: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object] | None) -> Filters:
        """Build filters from a decoded request body; empty strings count as absent."""
        if not raw:
            return cls()
        values: dict[str, str] = {}
        for name, value in raw.items():
            if name not in FILTER_FIELDS:
                raise InvalidFilter(f"filters.{name}")
            if value is None or value == "":
                continue
            if not isinstance(value, str):
                raise InvalidFilter(f"filters.{name}", f"filters.{name} must be a string")
            values[name] = value
        return cls(**values)

    def as_dict(self) -> dict[str, str]:
        return {
            name: value for name in FILTER_FIELDS if (value := getattr(self, name)) is not None
        }

    def is_empty(self) -> bool:
        return not self.as_dict()


@dataclass(frozen=True)
class SearchQuery:
    """Ephemeral search request value object; never persisted."""

    query_text: str
    limit: int = 10
    filters: Filters = field(default_factory=Filters)
    use_hybrid: bool = True


@dataclass(frozen=True)
class ScoredCandidate:
    """Per-path retrieval hit; exists only until fusion."""

    chunk: Chunk
    score: float
    rank: int
    path: RetrievalPath


@dataclass(frozen=True)
class PathRank:
    """1-based rank and raw score of a chunk within one retrieval path."""

    rank: int
    score: float


@dataclass(frozen=True)
class RrfRanking:
    """Ranking produced by reciprocal rank fusion of both paths."""

    rrf_score: float
    dense: PathRank | None
    sparse: PathRank | None
    fusion_method: str = "rrf"


@dataclass(frozen=True)
class SinglePathRanking:
    """Ranking passed through from a single path.

    fusion_method is None when hybrid search was not requested and carries the
    degradation label ("dense-only" / "sparse-only") when a path failed.
    """

    path: RetrievalPath
    hit: PathRank
    fusion_method: str | None = None


@dataclass(frozen=True)
class FusedResult:
    """Search output record: chunk plus how it was ranked."""

    chunk: Chunk
    score: float
    ranking: RrfRanking | SinglePathRanking

    @property
    def is_hybrid(self) -> bool:
        return isinstance(self.ranking, RrfRanking)


@dataclass(frozen=True)
class MatchedQA:
    """Q&A pair with its similarity score to the asked question."""

    qa: QAPair
    score: float


@dataclass(frozen=True)
class FacetItem:
    value: str
    count: int
