"""E5 HuggingFace embedding adapter for dense query vectors.

Why: Multilingual E5-instruct gives strong Arabic retrieval quality; chunks
     and Q&A pairs were embedded with the same model at ingestion time.
"""

from __future__ import annotations

import threading
from importlib import import_module
from typing import Any

import structlog

from legal_search.application.ports import EmbeddingPort
from legal_search.domain.errors import EmbeddingError
from legal_search.domain.types import Vector

logger = structlog.get_logger(__name__)


def _prefix_e5_query(text: str) -> str:
    """Prefix text for E5 query encoding.

    E5 models require specific instruction prefixes for optimal performance.
    """
    return f"query: {text}"


class E5HFEmbeddingAdapter(EmbeddingPort):
    """E5 query embedding with lazy model loading and dimension check.

    `embed_query` is blocking; async callers run it in a worker thread.
    """

    def __init__(
        self,
        model_id: str = "intfloat/multilingual-e5-large-instruct",
        device: str = "cpu",
        dimension: int = 1024,
    ) -> None:
        """Initialize E5 embedding adapter.

        Args:
            model_id: HuggingFace model ID (default: E5 multilingual instruct)
            device: Device for inference ("cuda", "cpu", "mps")
            dimension: Expected vector size; must match the index configuration
        """
        self._model_id = model_id
        self._device = device
        self.dimension = dimension
        self._model: Any | None = None  # Lazy loading
        self._lock = threading.Lock()

    def _load_model(self) -> Any:
        """Load sentence-transformers model with lazy import.

        Raises:
            EmbeddingError: If model loading fails
        """
        try:
            st_module = import_module("sentence_transformers")
            model = st_module.SentenceTransformer(self._model_id, device=self._device)
        except Exception as ex:
            raise EmbeddingError(f"load failed: {ex}") from ex
        logger.info("embedding model loaded", model=self._model_id, device=self._device)
        return model

    def _get_model(self) -> Any:
        with self._lock:
            if self._model is None:
                self._model = self._load_model()
            return self._model

    def embed_query(self, text: str) -> Vector:
        """Embed a single query with the E5 query instruction, L2-normalized.

        Raises:
            EmbeddingError: If encoding fails or the vector size is wrong
        """
        model = self._get_model()
        try:
            embedding = model.encode(
                _prefix_e5_query(text),
                normalize_embeddings=True,  # L2 normalization
                show_progress_bar=False,
                convert_to_numpy=True,
            )
        except Exception as ex:
            raise EmbeddingError(f"embed failed: {ex}") from ex

        vector: Vector = tuple(float(x) for x in embedding.tolist())
        if len(vector) != self.dimension:
            raise EmbeddingError(
                f"model {self._model_id} produced {len(vector)}-d vectors, "
                f"index expects {self.dimension}"
            )
        return vector
