"""Distributed tracing configuration for platform services.

Wraps OpenTelemetry setup for an OTLP/HTTP collector with optional FastAPI
auto-instrumentation. Also provides a scoped context manager and small ML
helpers so span names and attributes stay consistent across services.

When tracing is never configured, ``trace.get_tracer`` hands out the API's
no-op tracer, so the helpers below are always safe to call.
"""

import os
from typing import Any, Optional

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode

logger = structlog.get_logger("tracing")


def configure_tracing(
    service_name: str,
    otlp_endpoint: str = "http://localhost:4318/v1/traces",
    app: Any = None
) -> Optional[trace.Tracer]:
    """Configure distributed tracing for a service.

    Parameters
    - service_name: Logical service identifier used in trace resources
    - otlp_endpoint: Collector endpoint for exporting spans
    - app: Optional FastAPI application to instrument

    Returns
    - A tracer instance for ad-hoc span creation, or ``None`` on failure
    """

    try:
        tracer_provider = TracerProvider(
            resource=Resource.create({
                "service.name": service_name,
                "service.version": "0.1.0",
                "deployment.environment": os.getenv("ML_ENV", "local")
            })
        )
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint))
        )
        trace.set_tracer_provider(tracer_provider)

        if app is not None:
            from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

            FastAPIInstrumentor.instrument_app(app)
            logger.info("FastAPI instrumentation enabled")

        logger.info(
            "Distributed tracing configured",
            service_name=service_name,
            otlp_endpoint=otlp_endpoint
        )
        return trace.get_tracer(service_name)

    except Exception as e:
        # Tracing is best effort; the service keeps running without it.
        logger.error("Failed to configure tracing", error=str(e))
        return None


class TracingContext:
    """Context manager for tracing operations.

    Starts a span on entry and ensures it ends, recording success or error.
    """

    def __init__(self, tracer: trace.Tracer, operation_name: str, **attributes: Any):
        self.tracer = tracer
        self.operation_name = operation_name
        self.attributes = attributes
        self.span: Optional[trace.Span] = None

    def __enter__(self) -> trace.Span:
        self.span = self.tracer.start_span(self.operation_name)
        for key, value in self.attributes.items():
            self.span.set_attribute(key, str(value))
        return self.span

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.span:
            if exc_type is not None:
                self.span.set_status(Status(StatusCode.ERROR, f"{exc_type.__name__}: {exc_val}"))
            else:
                self.span.set_status(Status(StatusCode.OK))
            self.span.end()


class MLTracer:
    """ML-specific tracing utilities."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        self.tracer = trace.get_tracer(service_name)

    def trace_model_load(self, model_id: str, **attributes: Any) -> TracingContext:
        """Trace a model artifact load."""
        return TracingContext(self.tracer, "model.load", model_id=model_id, **attributes)

    def trace_model_inference(self, model_id: str, **attributes: Any) -> TracingContext:
        """Trace model inference operation."""
        return TracingContext(self.tracer, "model.inference", model_id=model_id, **attributes)


def get_ml_tracer(service_name: str) -> MLTracer:
    """Get ML-specific tracer for a service."""
    return MLTracer(service_name)
