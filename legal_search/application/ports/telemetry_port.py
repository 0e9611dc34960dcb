"""Telemetry port: search latency, degraded-path and facet refresh metrics."""

from typing import Any, Protocol


class TelemetryPort(Protocol):
    """Metric sink; `tags` become metric attributes (keep cardinality low)."""

    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        """Add one to counter `name`, e.g. legal_search.search.degraded."""
        ...

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        """Record `value` in histogram `name`, e.g. legal_search.search.latency_ms."""
        ...

    def shutdown(self) -> None:
        """Flush pending metrics and release exporters."""
        ...
