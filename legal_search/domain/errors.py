"""Domain errors (typed) for the retrieval core.

Why: One error family for the application layer, without infrastructure leaks.
Adapters translate library exceptions into these before returning.
"""

from __future__ import annotations

from dataclasses import dataclass


class DomainError(Exception):
    """Base class for domain-specific errors."""


class ValidationError(DomainError):
    """Invalid input; rejected before any backend call."""

    field: str | None = None


class InvalidQuery(ValidationError):
    """Query text is empty or malformed."""

    def __init__(self, message: str = "query text must not be empty", field: str = "query_text"):
        super().__init__(message)
        self.field = field


class InvalidLimit(ValidationError):
    """Result limit outside its allowed bounds."""

    def __init__(self, field: str, value: int, lower: int, upper: int) -> None:
        super().__init__(f"{field} must be between {lower} and {upper}, got {value}")
        self.field = field
        self.value = value
        self.lower = lower
        self.upper = upper


class InvalidThreshold(ValidationError):
    """Score threshold outside [0, 1]."""

    def __init__(self, field: str, value: float) -> None:
        super().__init__(f"{field} must be between 0.0 and 1.0, got {value}")
        self.field = field
        self.value = value


class InvalidFilter(ValidationError):
    """Unknown filter field or non-string filter value."""

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"unsupported filter field: {field}")
        self.field = field


class IndexUnavailable(DomainError):
    """Backing vector store unreachable after retry."""


@dataclass(frozen=True)
class PartialFailure(DomainError):
    """One retrieval path failed; the other one survived."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path} retrieval failed: {self.reason}"


class SynthesisFailure(DomainError):
    """Aggregating search results for synthesis failed."""


class EmbeddingError(DomainError):
    """Embedding backend failed or is misconfigured."""


class ConfigurationError(DomainError):
    """Settings are inconsistent or cannot be parsed."""


class AuthenticationError(DomainError):
    """Caller could not be resolved to an authenticated principal."""
