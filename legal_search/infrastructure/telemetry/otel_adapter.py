"""OpenTelemetry adapter for search metrics.

Why: p95 search latency, degraded-path rate and facet refresh health are the
     numbers that tell whether the hybrid index is keeping up.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource

from legal_search.application.ports import TelemetryPort


@dataclass
class OtelConfig:
    """Configuration for OpenTelemetry."""

    service_name: str = "legal-search"
    otlp_endpoint: str | None = None  # e.g., "http://localhost:4317"
    environment: str = "production"
    enable_console: bool = False  # Debug: print metrics to console


class OpenTelemetryAdapter(TelemetryPort):
    """OpenTelemetry metrics: counters via incr(), histograms via observe().

    Instruments are created lazily on first use and cached by name.
    """

    def __init__(self, cfg: OtelConfig, readers: list[MetricReader] | None = None) -> None:
        self._cfg = cfg
        self._counters: dict[str, Any] = {}
        self._histograms: dict[str, Any] = {}
        self._provider = MeterProvider(
            resource=Resource.create(
                {
                    "service.name": cfg.service_name,
                    "deployment.environment": cfg.environment,
                }
            ),
            metric_readers=readers if readers is not None else self._default_readers(cfg),
        )
        self._meter = self._provider.get_meter(__name__)

    @staticmethod
    def _default_readers(cfg: OtelConfig) -> list[MetricReader]:
        readers: list[MetricReader] = []
        if cfg.otlp_endpoint:
            # Exporter ships separately (opentelemetry-exporter-otlp)
            from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
                OTLPMetricExporter,
            )

            readers.append(
                PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=cfg.otlp_endpoint))
            )
        if cfg.enable_console:
            readers.append(PeriodicExportingMetricReader(ConsoleMetricExporter()))
        return readers

    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        """Increment a counter metric.

        Examples:
            - incr("legal_search.search.degraded", {"method": "dense-only"})
            - incr("legal_search.facets.refresh", {"status": "failure"})
        """
        if name not in self._counters:
            self._counters[name] = self._meter.create_counter(
                name=name, description=f"Counter for {name}"
            )
        self._counters[name].add(1, attributes=tags or {})

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        """Record a value in a histogram (e.g. "legal_search.search.latency_ms")."""
        if name not in self._histograms:
            self._histograms[name] = self._meter.create_histogram(
                name=name, description=f"Histogram for {name}"
            )
        self._histograms[name].record(value, attributes=tags or {})

    def shutdown(self) -> None:
        self._provider.shutdown()


class NoopTelemetry(TelemetryPort):
    """Used when telemetry is disabled in settings."""

    def incr(self, name: str, tags: dict[str, Any] | None = None) -> None:
        return None

    def observe(self, name: str, value: float, tags: dict[str, Any] | None = None) -> None:
        return None

    def shutdown(self) -> None:
        return None
