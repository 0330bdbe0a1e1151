"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
import structlog

from .config import settings

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Pricing metrics
FARE_LOOKUPS = Counter(
    'fare_lookups_total',
    'Fare table lookups by outcome',
    ['train_class', 'outcome'],
    registry=REGISTRY
)

FARE_TABLE_WRITES = Counter(
    'fare_table_writes_total',
    'Fare tiers inserted or overwritten',
    ['train_class'],
    registry=REGISTRY
)

QUOTE_CACHE_LOOKUPS = Counter(
    'quote_cache_lookups_total',
    'Consistency cache lookups by result',
    ['result'],
    registry=REGISTRY
)

QUOTE_CACHE_ENTRIES = Gauge(
    'quote_cache_entries',
    'Number of stored consistency records',
    registry=REGISTRY
)

# Booking metrics
BOOKINGS_CREATED = Counter(
    'bookings_created_total',
    'Total bookings created in WAITING state',
    registry=REGISTRY
)

BOOKINGS_CONFIRMED = Counter(
    'bookings_confirmed_total',
    'Total bookings confirmed',
    registry=REGISTRY
)

BOOKINGS_CANCELLED = Counter(
    'bookings_cancelled_total',
    'Total bookings cancelled',
    ['reason'],
    registry=REGISTRY
)

PNR_COLLISIONS = Counter(
    'pnr_collisions_total',
    'Generated PNRs that collided and were retried',
    registry=REGISTRY
)

SIGNATURE_MISMATCHES = Counter(
    'payment_signature_mismatches_total',
    'Payment callbacks rejected for a bad signature',
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_tracing(app_name: str = "railfare", otlp_endpoint: str | None = None):
    """Setup OpenTelemetry tracing; spans are exported over OTLP when an endpoint is given."""

    # Create resource
    resource = Resource.create({
        "service.name": app_name,
        "service.version": "1.0.0",
        "environment": settings.environment,
    })

    # Setup tracer provider
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)

    # Setup OTLP exporter (if OTLP endpoint is configured)
    if otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(endpoint=otlp_endpoint)
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    # Get tracer
    tracer = trace.get_tracer(__name__)
    return tracer


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument a SQLAlchemy engine with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine)


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_fare_lookup(train_class: str, outcome: str):
        """Record a fare lookup ('hit' or 'no_fare')."""
        FARE_LOOKUPS.labels(train_class=train_class, outcome=outcome).inc()

    @staticmethod
    def record_fare_write(train_class: str):
        """Record a fare tier write."""
        FARE_TABLE_WRITES.labels(train_class=train_class).inc()

    @staticmethod
    def record_cache_lookup(result: str):
        """Record a consistency cache lookup ('hit', 'miss' or 'wait')."""
        QUOTE_CACHE_LOOKUPS.labels(result=result).inc()

    @staticmethod
    def set_cache_entries(count: int):
        """Set the number of stored consistency records."""
        QUOTE_CACHE_ENTRIES.set(count)

    @staticmethod
    def record_booking_created():
        """Record a booking creation."""
        BOOKINGS_CREATED.inc()

    @staticmethod
    def record_booking_confirmed():
        """Record a booking confirmation."""
        BOOKINGS_CONFIRMED.inc()

    @staticmethod
    def record_booking_cancelled(reason: str):
        """Record a booking cancellation."""
        BOOKINGS_CANCELLED.labels(reason=reason).inc()

    @staticmethod
    def record_pnr_collision():
        """Record a PNR collision."""
        PNR_COLLISIONS.inc()

    @staticmethod
    def record_signature_mismatch():
        """Record a rejected payment signature."""
        SIGNATURE_MISMATCHES.inc()


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


class StructuredLogger:
    """Structured logger with business context."""

    def __init__(self, name: str, logger: Any = None):
        self.logger = logger if logger is not None else structlog.get_logger(name)
        self.name = name

    def info(self, message: str, **kwargs):
        """Log info message with context."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with context."""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with context."""
        self.logger.error(message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug message with context."""
        self.logger.debug(message, **kwargs)

    def with_context(self, **kwargs):
        """Add context to logger."""
        return StructuredLogger(self.name, self.logger.bind(**kwargs))


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
