"""OpenTelemetry distributed tracing setup.

Configures OpenTelemetry SDK with OTLP exporter for distributed tracing.
Includes auto-instrumentation for FastAPI and HTTPX (Kubernetes and GitHub
calls).
"""

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

from src.infrastructure.config import get_settings

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None


def setup_tracing() -> TracerProvider | None:
    """Setup OpenTelemetry tracing with OTLP exporter.

    Does nothing unless OTEL_TRACING_ENABLED is set. Idempotent: the provider
    is installed once per process.

    Returns:
        TracerProvider instance, or None when tracing is disabled

    Note:
        FastAPI must be instrumented separately after app creation
        using instrument_fastapi_app()
    """
    global _provider
    settings = get_settings()
    otel_config = settings.observability

    if not otel_config.tracing_enabled:
        return None
    if _provider is not None:
        return _provider

    resource = Resource.create(
        {
            "service.name": otel_config.service_name,
            "deployment.environment": settings.environment,
        }
    )
    provider = TracerProvider(
        resource=resource, sampler=TraceIdRatioBased(otel_config.trace_sample_rate)
    )

    try:
        exporter = OTLPSpanExporter(
            endpoint=otel_config.exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info(
            "OpenTelemetry tracing configured",
            extra={
                "service_name": otel_config.service_name,
                "otlp_endpoint": otel_config.exporter_otlp_endpoint,
                "sample_rate": otel_config.trace_sample_rate,
            },
        )
    except Exception as e:
        logger.warning(
            "Failed to configure OTLP exporter, tracing will be disabled",
            extra={"error": str(e)},
        )

    trace.set_tracer_provider(provider)
    HTTPXClientInstrumentor().instrument()
    _provider = provider
    return provider


def instrument_fastapi_app(app) -> None:
    """Instrument FastAPI application with OpenTelemetry.

    Must be called after FastAPI app is created.

    Args:
        app: FastAPI application instance
    """
    if not get_settings().observability.tracing_enabled:
        return
    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI auto-instrumentation enabled")
    except Exception as e:
        logger.warning(
            "Failed to instrument FastAPI app",
            extra={"error": str(e)},
        )


def get_tracer(name: str):
    """Get OpenTelemetry tracer for manual instrumentation.

    Args:
        name: Tracer name (typically __name__)

    Returns:
        Tracer instance for creating spans (no-op when tracing is disabled)

    Example:
        >>> tracer = get_tracer(__name__)
        >>> with tracer.start_as_current_span("service_health") as span:
        ...     span.set_attribute("service.name", "payments")
    """
    return trace.get_tracer(name)
