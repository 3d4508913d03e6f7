from contextlib import asynccontextmanager
from typing import AsyncGenerator, Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter, Histogram, start_http_server
import structlog

from app.core.config import settings

logger = structlog.get_logger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "endpoint", "status_code"]
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
)

AI_REQUEST_COUNT = Counter(
    "ai_gateway_requests_total",
    "Total AI gateway requests",
    ["operation", "status"],
)

AI_REQUEST_DURATION = Histogram(
    "ai_gateway_request_duration_seconds",
    "AI gateway request duration in seconds",
    ["operation", "model"],
)

IMPORTED_ROWS = Counter(
    "import_rows_total",
    "Rows processed by the CSV/XLSX importers",
    ["kind", "outcome"],  # outcome: imported, skipped
)

REDIS_OPERATIONS = Counter(
    "redis_operations_total", "Total Redis operations", ["operation", "status"]
)

DATABASE_OPERATIONS = Counter(
    "database_operations_total",
    "Total database operations",
    ["operation", "table", "status"],
)


def setup_observability() -> None:
    """Setup OpenTelemetry tracing and the Prometheus metrics endpoint."""
    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": settings.version,
            "service.environment": settings.environment,
        }
    )

    trace.set_tracer_provider(TracerProvider(resource=resource))

    if settings.otel_exporter_otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=not settings.is_production(),
        )
        trace.get_tracer_provider().add_span_processor(BatchSpanProcessor(otlp_exporter))

    SQLAlchemyInstrumentor().instrument()
    RedisInstrumentor().instrument()

    if settings.prometheus_metrics_enabled and not settings.is_testing():
        try:
            start_http_server(settings.prometheus_metrics_port)
            logger.info(
                "Prometheus metrics server started",
                port=settings.prometheus_metrics_port,
            )
        except OSError as e:
            logger.error("Failed to start Prometheus metrics server", error=str(e))


def get_tracer() -> trace.Tracer:
    """Get OpenTelemetry tracer."""
    return trace.get_tracer(__name__)


@asynccontextmanager
async def trace_async_operation(
    operation_name: str, **attributes: Any
) -> AsyncGenerator[trace.Span, None]:
    """Context manager for tracing async operations."""
    tracer = get_tracer()
    with tracer.start_as_current_span(operation_name) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


class MetricsCollector:
    """Helper class for collecting application metrics."""

    @staticmethod
    def record_http_request(
        method: str, endpoint: str, status_code: int, duration: float
    ) -> None:
        REQUEST_COUNT.labels(
            method=method, endpoint=endpoint, status_code=status_code
        ).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

    @staticmethod
    def record_ai_request(
        operation: str, status: str, duration: float, model: str | None = None
    ) -> None:
        AI_REQUEST_COUNT.labels(operation=operation, status=status).inc()
        AI_REQUEST_DURATION.labels(
            operation=operation, model=model or settings.openai_model
        ).observe(duration)

    @staticmethod
    def record_import(kind: str, imported: int, skipped: int) -> None:
        IMPORTED_ROWS.labels(kind=kind, outcome="imported").inc(imported)
        IMPORTED_ROWS.labels(kind=kind, outcome="skipped").inc(skipped)

    @staticmethod
    def record_redis_operation(operation: str, status: str) -> None:
        REDIS_OPERATIONS.labels(operation=operation, status=status).inc()

    @staticmethod
    def record_database_operation(operation: str, table: str, status: str) -> None:
        DATABASE_OPERATIONS.labels(
            operation=operation,
            table=table,
            status=status,
        ).inc()


# Global metrics collector instance
metrics = MetricsCollector()
