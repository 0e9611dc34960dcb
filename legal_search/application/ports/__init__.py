"""Application ports package.

Re-exports every port so use cases and the container import from one place.
"""

from legal_search.application.ports.clock_port import ClockPort
from legal_search.application.ports.embedding_port import EmbeddingPort
from legal_search.application.ports.principal_port import Principal, PrincipalVerifierPort
from legal_search.application.ports.sparse_encoder_port import SparseEncoderPort
from legal_search.application.ports.telemetry_port import TelemetryPort
from legal_search.application.ports.vector_index_port import VectorIndexPort

__all__ = [
    "ClockPort",
    "EmbeddingPort",
    "Principal",
    "PrincipalVerifierPort",
    "SparseEncoderPort",
    "TelemetryPort",
    "VectorIndexPort",
]
