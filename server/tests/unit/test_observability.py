"""Unit tests for tracing setup."""

from opentelemetry.sdk.trace import SpanProcessor

from railfare.core import observability
from railfare.core.config import Settings


class RecordingExporter:
    def __init__(self, endpoint):
        self.endpoint = endpoint


def _capture_tracing(monkeypatch):
    providers = []
    processors = []

    def batch_processor(exporter):
        processors.append(exporter)
        return SpanProcessor()

    monkeypatch.setattr(observability.trace, "set_tracer_provider", providers.append)
    monkeypatch.setattr(observability, "OTLPSpanExporter", RecordingExporter)
    monkeypatch.setattr(observability, "BatchSpanProcessor", batch_processor)
    return providers, processors


def test_otlp_endpoint_from_environment(monkeypatch):
    monkeypatch.setenv("RAILFARE_OTLP_ENDPOINT", "http://collector:4317")

    assert Settings().otlp_endpoint == "http://collector:4317"
    assert Settings(otlp_endpoint=None).otlp_endpoint is None


def test_tracing_exports_to_configured_endpoint(monkeypatch):
    providers, processors = _capture_tracing(monkeypatch)

    observability.setup_tracing("railfare", "http://collector:4317")

    assert len(providers) == 1
    assert [exporter.endpoint for exporter in processors] == ["http://collector:4317"]


def test_tracing_without_endpoint_exports_nothing(monkeypatch):
    providers, processors = _capture_tracing(monkeypatch)

    observability.setup_tracing("railfare")

    assert len(providers) == 1
    assert processors == []
