"""Tests for the OpenTelemetry metrics adapter."""

import pytest
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from legal_search.infrastructure.telemetry.otel_adapter import (
    NoopTelemetry,
    OpenTelemetryAdapter,
    OtelConfig,
)


@pytest.fixture
def reader():
    return InMemoryMetricReader()


@pytest.fixture
def adapter(reader):
    telemetry = OpenTelemetryAdapter(OtelConfig(environment="test"), readers=[reader])
    yield telemetry
    telemetry.shutdown()


def collected(reader):
    data = reader.get_metrics_data()
    return {
        metric.name: metric
        for resource in data.resource_metrics
        for scope in resource.scope_metrics
        for metric in scope.metrics
    }


def test_incr_counts_per_attribute_set(adapter, reader):
    adapter.incr("legal_search.search.degraded", {"method": "dense-only"})
    adapter.incr("legal_search.search.degraded", {"method": "dense-only"})
    adapter.incr("legal_search.search.degraded", {"method": "sparse-only"})

    metric = collected(reader)["legal_search.search.degraded"]
    by_method = {p.attributes["method"]: p.value for p in metric.data.data_points}
    assert by_method == {"dense-only": 2, "sparse-only": 1}


def test_observe_records_histogram(adapter, reader):
    adapter.observe("legal_search.search.latency_ms", 12.5, {"method": "hybrid"})
    adapter.observe("legal_search.search.latency_ms", 7.5, {"method": "hybrid"})

    metric = collected(reader)["legal_search.search.latency_ms"]
    (point,) = metric.data.data_points
    assert point.count == 2
    assert point.sum == pytest.approx(20.0)


def test_resource_carries_service_name(adapter, reader):
    adapter.incr("legal_search.facets.refresh", {"status": "success"})

    resource = reader.get_metrics_data().resource_metrics[0].resource
    assert resource.attributes["service.name"] == "legal-search"
    assert resource.attributes["deployment.environment"] == "test"


def test_noop_telemetry_accepts_calls():
    noop = NoopTelemetry()
    noop.incr("x", {"a": 1})
    noop.observe("y", 1.0)
