"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from .config import settings

SERVICE_NAME = "inselbahn-engine"
SERVICE_VERSION = "1.0.0"

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

# Business metrics
HOLDS_PLACED = Counter(
    'reservation_holds_placed_total',
    'Reservation holds placed or refreshed',
    ['tour_type'],
    registry=REGISTRY
)

HOLDS_REAPED = Counter(
    'reservation_holds_reaped_total',
    'Expired reservation holds deleted',
    registry=REGISTRY
)

BOOKINGS_COMMITTED = Counter(
    'bookings_committed_total',
    'Bookings committed',
    ['tour_type', 'channel'],
    registry=REGISTRY
)

BOOKINGS_CANCELLED = Counter(
    'bookings_cancelled_total',
    'Bookings cancelled',
    ['mode'],
    registry=REGISTRY
)

CAPACITY_REJECTIONS = Counter(
    'capacity_rejections_total',
    'Seat claims rejected because the slot was full',
    ['tour_type', 'channel', 'operation'],
    registry=REGISTRY
)

SLOT_OCCUPANCY = Gauge(
    'slot_occupied_seats',
    'Occupied seats of a slot at its last capacity check',
    ['tour_type', 'slot'],
    registry=REGISTRY
)

EMAILS_SENT = Counter(
    'emails_sent_total',
    'Emails handed to the SMTP transport',
    ['kind', 'outcome'],
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

    renderer = structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer()

    # request_id and other request context arrive via contextvars
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        add_trace_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.stdlib.ExtraAdder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors[:-1],
            structlog.processors.StackInfoRenderer(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib loggers through the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level)


def setup_tracing(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry tracing."""

    # Create resource
    resource = Resource.create({
        "service.name": app_name,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })

    provider = TracerProvider(resource=resource)

    # Setup OTLP exporter (if OTLP endpoint is configured)
    if settings.otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint)
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument SQLAlchemy with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: int, duration: float):
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

    @staticmethod
    def record_hold_placed(tour_type: str):
        """Record a hold placement or refresh."""
        HOLDS_PLACED.labels(tour_type=tour_type).inc()

    @staticmethod
    def record_holds_reaped(count: int):
        if count:
            HOLDS_REAPED.inc(count)

    @staticmethod
    def record_booking_committed(tour_type: str, channel: str):
        """Record a committed booking."""
        BOOKINGS_COMMITTED.labels(tour_type=tour_type, channel=channel).inc()

    @staticmethod
    def record_booking_cancelled(mode: str):
        """Record a cancellation, ``mode`` is self_service or admin."""
        BOOKINGS_CANCELLED.labels(mode=mode).inc()

    @staticmethod
    def record_capacity_rejection(tour_type: str, channel: str, operation: str):
        CAPACITY_REJECTIONS.labels(tour_type=tour_type, channel=channel, operation=operation).inc()

    @staticmethod
    def set_slot_occupancy(tour_type: str, slot: str, occupied: int):
        SLOT_OCCUPANCY.labels(tour_type=tour_type, slot=slot).set(occupied)

    @staticmethod
    def record_email(kind: str, outcome: str):
        EMAILS_SENT.labels(kind=kind, outcome=outcome).inc()


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()
