"""Dependency injection container with environment-driven wiring.

Why: Single place for wiring; all other layers receive their collaborators
     and never look at the environment themselves.
"""

from __future__ import annotations

from datetime import timedelta

from legal_search.application.ports import (
    ClockPort,
    EmbeddingPort,
    PrincipalVerifierPort,
    SparseEncoderPort,
    TelemetryPort,
    VectorIndexPort,
)
from legal_search.application.services.facet_cache import FacetCache
from legal_search.application.services.retriever import CandidateRetriever
from legal_search.application.use_cases.discover_facets import DiscoverFacets
from legal_search.application.use_cases.match_qa import MatchQA
from legal_search.application.use_cases.search_decisions import SearchDecisions
from legal_search.application.use_cases.synthesize_search import SynthesizeSearch
from legal_search.config.settings import AppSettings


class Container:
    """Dependency injection container for application components.

    Responsibilities:
    1. Read settings from environment (via AppSettings)
    2. Choose adapters based on settings (vector_backend, telemetry_enabled)
    3. Inject dependencies into use cases
    4. Own long-lived state (index client, facet cache) and close it

    Adapters can be handed in directly, which is how tests swap in fakes.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        embedding: EmbeddingPort | None = None,
        sparse_encoder: SparseEncoderPort | None = None,
        index: VectorIndexPort | None = None,
        clock: ClockPort | None = None,
        telemetry: TelemetryPort | None = None,
        verifier: PrincipalVerifierPort | None = None,
    ) -> None:
        self.settings = settings or AppSettings()
        self._embedding = embedding
        self._sparse_encoder = sparse_encoder
        self._index = index
        self._clock = clock
        self._telemetry = telemetry
        self._verifier = verifier
        self._facet_cache: FacetCache | None = None

    # ===== Adapters =====

    def get_embedding(self) -> EmbeddingPort:
        if self._embedding is None:
            self._embedding = self._build_embedding()
        return self._embedding

    def get_sparse_encoder(self) -> SparseEncoderPort:
        if self._sparse_encoder is None:
            from legal_search.infrastructure.sparse.hashed_term_encoder import HashedTermEncoder

            self._sparse_encoder = HashedTermEncoder(hash_space=self.settings.sparse_hash_space)
        return self._sparse_encoder

    def get_index(self) -> VectorIndexPort:
        if self._index is None:
            self._index = self._build_index()
        return self._index

    def get_clock(self) -> ClockPort:
        if self._clock is None:
            from legal_search.infrastructure.time.system_clock import SystemClock

            self._clock = SystemClock()
        return self._clock

    def get_telemetry(self) -> TelemetryPort:
        if self._telemetry is None:
            self._telemetry = self._build_telemetry()
        return self._telemetry

    def get_verifier(self) -> PrincipalVerifierPort:
        if self._verifier is None:
            from legal_search.infrastructure.auth.token_verifier import StaticTokenVerifier

            self._verifier = StaticTokenVerifier(
                self.settings.api_tokens, required=self.settings.auth_required
            )
        return self._verifier

    # ===== Application services / use cases =====

    def get_retriever(self) -> CandidateRetriever:
        return CandidateRetriever(
            embedding=self.get_embedding(),
            sparse_encoder=self.get_sparse_encoder(),
            index=self.get_index(),
            subquery_timeout_s=self.settings.subquery_timeout_s,
        )

    def get_search_use_case(self) -> SearchDecisions:
        return SearchDecisions(
            retriever=self.get_retriever(),
            rrf_k=self.settings.rrf_k,
            dense_weight=self.settings.rrf_dense_weight,
            sparse_weight=self.settings.rrf_sparse_weight,
            candidate_pool=self.settings.search_candidate_pool,
            telemetry=self.get_telemetry(),
        )

    def get_qa_use_case(self) -> MatchQA:
        return MatchQA(embedding=self.get_embedding(), index=self.get_index())

    def get_synthesis_use_case(self) -> SynthesizeSearch:
        return SynthesizeSearch(
            search=self.get_search_use_case(), top_n=self.settings.synthesis_top_n
        )

    def get_facet_cache(self) -> FacetCache:
        """Process-wide facet cache (one per container)."""
        if self._facet_cache is None:
            self._facet_cache = FacetCache(
                loader=DiscoverFacets(self.get_index()).execute,
                clock=self.get_clock(),
                ttl=timedelta(seconds=self.settings.facet_ttl_s),
                telemetry=self.get_telemetry(),
            )
        return self._facet_cache

    async def aclose(self) -> None:
        if self._facet_cache is not None:
            await self._facet_cache.close()
        if self._index is not None:
            await self._index.close()
        if self._telemetry is not None:
            self._telemetry.shutdown()

    # ===== Private Builder Methods =====

    def _build_embedding(self) -> EmbeddingPort:
        from legal_search.infrastructure.embeddings.e5_hf_adapter import E5HFEmbeddingAdapter

        return E5HFEmbeddingAdapter(
            model_id=self.settings.embedding_model,
            device=self.settings.embedding_device,
            dimension=self.settings.embedding_dim,
        )

    def _build_index(self) -> VectorIndexPort:
        """Build the vector index based on settings.vector_backend (qdrant | memory)."""
        if self.settings.vector_backend == "memory":
            return self._build_memory_index()
        return self._build_qdrant_index()

    def _build_qdrant_index(self) -> VectorIndexPort:
        from legal_search.infrastructure.vectorstore.qdrant_index import (
            QdrantConfig,
            QdrantVectorIndex,
        )

        s = self.settings
        cfg = QdrantConfig(
            url=s.qdrant_url,
            api_key=s.qdrant_api_key or None,
            prefer_grpc=s.qdrant_prefer_grpc,
            timeout_s=s.qdrant_timeout_s,
            chunks_collection=s.chunks_collection,
            qa_collection=s.qa_collection,
            facets_collection=s.facets_collection,
            dense_vector_name=s.dense_vector_name,
            sparse_vector_name=s.sparse_vector_name,
            qa_vector_name=s.qa_vector_name or None,
            retry_backoff_s=s.index_retry_backoff_s,
        )
        return QdrantVectorIndex(cfg)

    def _build_memory_index(self) -> VectorIndexPort:
        from legal_search.infrastructure.vectorstore.memory_index import MemoryVectorIndex

        s = self.settings
        index = MemoryVectorIndex(
            dimension=s.embedding_dim,
            facet_source="chunks" if s.facets_collection == s.chunks_collection else "qa",
        )
        if s.memory_index_path:
            index.load_jsonl(s.memory_index_path)
        return index

    def _build_telemetry(self) -> TelemetryPort:
        from legal_search.infrastructure.telemetry.otel_adapter import (
            NoopTelemetry,
            OpenTelemetryAdapter,
            OtelConfig,
        )

        if not self.settings.telemetry_enabled:
            return NoopTelemetry()
        return OpenTelemetryAdapter(
            OtelConfig(
                otlp_endpoint=self.settings.otlp_endpoint or None,
                environment=self.settings.telemetry_environment,
            )
        )


def build_container(settings: AppSettings | None = None) -> Container:
    """Build dependency injection container with settings.

    Example:
        container = build_container()
        result = await container.get_search_use_case().execute(query)
    """
    return Container(settings)
