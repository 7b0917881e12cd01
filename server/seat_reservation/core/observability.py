"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

from opentelemetry import trace, metrics
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry
import structlog

from .config import settings

SERVICE_NAME = "seat-reservation-api"

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

# Reservation metrics
SEATS_RESERVED = Counter(
    'seat_reservations_claimed_total',
    'Seats successfully claimed',
    registry=REGISTRY
)

SEAT_CONFLICTS = Counter(
    'seat_reservation_conflicts_total',
    'Claims rejected because the seat was already held',
    registry=REGISTRY
)

RESERVATIONS_RETRACTED = Counter(
    'seat_reservations_retracted_total',
    'Reservations moved from held to retracted',
    ['reason'],
    registry=REGISTRY
)

# Cascading deletion metrics
RECORDS_DELETED = Counter(
    'cascade_records_deleted_total',
    'Records removed by cascading deletes',
    ['entity'],
    registry=REGISTRY
)

DELETE_BATCHES = Counter(
    'cascade_delete_batches_total',
    'Reservation delete batches submitted',
    registry=REGISTRY
)

# Availability metrics
ACTIVE_SUBSCRIPTIONS = Gauge(
    'availability_subscriptions_active',
    'Open availability subscriptions',
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

    # Request IDs are bound per request by the middleware via contextvars
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


def _resource(app_name: str) -> Resource:
    return Resource.create({
        "service.name": app_name,
        "service.version": "1.0.0",
        "environment": settings.environment,
    })


def setup_tracing(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry tracing."""
    provider = TracerProvider(resource=_resource(app_name))

    # Export only when a collector is configured
    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))

    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def setup_metrics(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry metrics."""
    if settings.otlp_endpoint:
        otlp_exporter = OTLPMetricExporter(endpoint=settings.otlp_endpoint)
        reader = PeriodicExportingMetricReader(exporter=otlp_exporter, export_interval_millis=60000)
        metrics.set_meter_provider(MeterProvider(resource=_resource(app_name), metric_readers=[reader]))

    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine=None):
    """Instrument SQLAlchemy with OpenTelemetry."""
    if engine is not None:
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)
    else:
        SQLAlchemyInstrumentor().instrument()


class MetricsCollector:
    """Collector for reservation metrics."""

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: int, duration: float):
        """Record one served HTTP request."""
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

    @staticmethod
    def record_seat_reserved():
        """Record a successful seat claim."""
        SEATS_RESERVED.inc()

    @staticmethod
    def record_seat_conflict():
        """Record a claim that lost to an existing holder."""
        SEAT_CONFLICTS.inc()

    @staticmethod
    def record_retraction(reason: str):
        """Record a held -> retracted transition ("cancel" or "retract")."""
        RESERVATIONS_RETRACTED.labels(reason=reason).inc()

    @staticmethod
    def record_deletions(entity: str, count: int):
        """Record records removed by a cascading delete."""
        if count > 0:
            RECORDS_DELETED.labels(entity=entity).inc(count)

    @staticmethod
    def record_delete_batches(count: int):
        """Record submitted reservation delete batches."""
        if count > 0:
            DELETE_BATCHES.inc(count)

    @staticmethod
    def subscription_opened():
        ACTIVE_SUBSCRIPTIONS.inc()

    @staticmethod
    def subscription_closed():
        ACTIVE_SUBSCRIPTIONS.dec()


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()
