"""Tracing support; attribute names live in ``observability.attributes``."""

from migrationbus.observability.tracer import (
    OTEL_AVAILABLE,
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    SpanAttributes,
    Tracer,
    create_tracer,
)

__all__ = [
    "OTEL_AVAILABLE",
    "SpanAttributes",
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
]
