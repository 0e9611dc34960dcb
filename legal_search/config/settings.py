"""Application settings with environment-driven configuration.

Why: Single place that reads the environment; retrieval knobs (RRF k, path
     weights, timeouts, facet TTL) stay tunable without code changes.
"""

import os
from dataclasses import dataclass, field

from legal_search.domain.errors import ConfigurationError

VECTOR_BACKENDS = ("qdrant", "memory")


def _str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as ex:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from ex


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as ex:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from ex


def _csv(name: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in os.getenv(name, "").split(",") if part.strip())


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from environment variables.

    This is the ONLY place where environment variables are read.
    All other layers receive settings via dependency injection.

    Raises:
        ConfigurationError: On unparsable values or an unknown backend
    """

    # ===== Vector Index Configuration =====
    vector_backend: str = field(default_factory=lambda: _str("VECTOR_BACKEND", "qdrant").lower())
    # Supported: "qdrant" | "memory"

    qdrant_url: str = field(default_factory=lambda: _str("QDRANT_URL", "http://localhost:6333"))
    qdrant_api_key: str = field(default_factory=lambda: _str("QDRANT_API_KEY", ""))
    qdrant_prefer_grpc: bool = field(default_factory=lambda: _bool("QDRANT_PREFER_GRPC", False))
    qdrant_timeout_s: int = field(default_factory=lambda: _int("QDRANT_TIMEOUT_S", 30))

    chunks_collection: str = field(
        default_factory=lambda: _str("CHUNKS_COLLECTION", "legal_chunks")
    )
    qa_collection: str = field(default_factory=lambda: _str("QA_COLLECTION", "legal_qa_pairs"))
    facets_collection: str = field(
        default_factory=lambda: _str("FACETS_COLLECTION", "legal_qa_pairs")
    )
    dense_vector_name: str = field(default_factory=lambda: _str("DENSE_VECTOR_NAME", "dense"))
    sparse_vector_name: str = field(default_factory=lambda: _str("SPARSE_VECTOR_NAME", "sparse"))
    qa_vector_name: str = field(default_factory=lambda: _str("QA_VECTOR_NAME", ""))
    # Empty = the Q&A collection uses a single unnamed vector

    memory_index_path: str = field(default_factory=lambda: _str("MEMORY_INDEX_PATH", ""))
    # JSON-lines export loaded by the "memory" backend

    # ===== Embedding Configuration =====
    embedding_model: str = field(
        default_factory=lambda: _str("EMBEDDING_MODEL", "intfloat/multilingual-e5-large-instruct")
    )
    embedding_device: str = field(default_factory=lambda: _str("EMBEDDING_DEVICE", "cpu"))
    # Supported: "cpu" | "cuda" | "mps"
    embedding_dim: int = field(default_factory=lambda: _int("EMBEDDING_DIM", 1024))
    sparse_hash_space: int = field(default_factory=lambda: _int("SPARSE_HASH_SPACE", 2**20))

    # ===== Retrieval / Fusion =====
    rrf_k: float = field(default_factory=lambda: _float("RRF_K", 60.0))
    rrf_dense_weight: float = field(default_factory=lambda: _float("RRF_DENSE_WEIGHT", 1.0))
    rrf_sparse_weight: float = field(default_factory=lambda: _float("RRF_SPARSE_WEIGHT", 1.0))
    search_candidate_pool: int = field(
        default_factory=lambda: _int("SEARCH_CANDIDATE_POOL", 100)
    )
    # Per-path fetch depth, independent of the page size
    subquery_timeout_s: float = field(default_factory=lambda: _float("SUBQUERY_TIMEOUT_S", 3.0))
    index_retry_backoff_s: float = field(
        default_factory=lambda: _float("INDEX_RETRY_BACKOFF_S", 0.2)
    )

    # ===== Facets / Synthesis =====
    facet_ttl_s: float = field(default_factory=lambda: _float("FACET_TTL_S", 300.0))
    synthesis_top_n: int = field(default_factory=lambda: _int("SYNTHESIS_TOP_N", 10))

    # ===== Auth =====
    auth_required: bool = field(default_factory=lambda: _bool("AUTH_REQUIRED", True))
    api_tokens: tuple[str, ...] = field(default_factory=lambda: _csv("API_TOKENS"))

    # ===== Telemetry / Logging =====
    telemetry_enabled: bool = field(default_factory=lambda: _bool("TELEMETRY_ENABLED", False))
    otlp_endpoint: str = field(default_factory=lambda: _str("OTLP_ENDPOINT", ""))
    # Empty string = no OTLP export
    telemetry_environment: str = field(
        default_factory=lambda: _str("TELEMETRY_ENVIRONMENT", "production")
    )
    log_level: str = field(default_factory=lambda: _str("LOG_LEVEL", "INFO").upper())
    log_json: bool = field(default_factory=lambda: _bool("LOG_JSON", True))

    def __post_init__(self) -> None:
        if self.vector_backend not in VECTOR_BACKENDS:
            raise ConfigurationError(
                f"VECTOR_BACKEND must be one of {', '.join(VECTOR_BACKENDS)}, "
                f"got {self.vector_backend!r}"
            )
        if self.rrf_k <= 0:
            raise ConfigurationError("RRF_K must be positive")
        if self.embedding_dim <= 0 or self.sparse_hash_space <= 0:
            raise ConfigurationError("EMBEDDING_DIM and SPARSE_HASH_SPACE must be positive")
        if not 1 <= self.search_candidate_pool <= 100:
            raise ConfigurationError("SEARCH_CANDIDATE_POOL must be between 1 and 100")
        if self.subquery_timeout_s <= 0 or self.facet_ttl_s <= 0:
            raise ConfigurationError("SUBQUERY_TIMEOUT_S and FACET_TTL_S must be positive")
