"""
Tracing for migrationbus components.

Each component takes an optional ``tracer`` and otherwise builds one with
``create_tracer(__name__, enable_tracing)``. OpenTelemetry is an optional
dependency; without it, or with tracing turned off, spans are no-ops that
yield None, so call sites guard attribute writes with ``if span:``.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from opentelemetry.trace import Span

try:
    from opentelemetry import trace

    OTEL_AVAILABLE = True
except ImportError:
    trace = None  # type: ignore[assignment]
    OTEL_AVAILABLE = False

SpanAttributes = dict[str, Any]


@runtime_checkable
class Tracer(Protocol):
    """Opens spans around migrations, retries, lock attempts and bus delivery."""

    @property
    def enabled(self) -> bool: ...

    def span(
        self,
        name: str,
        attributes: SpanAttributes | None = None,
    ) -> AbstractContextManager[Span | None]: ...


class NullTracer:
    """Tracer used when tracing is off."""

    enabled = False

    @contextlib.contextmanager
    def span(self, name: str, attributes: SpanAttributes | None = None) -> Iterator[None]:
        yield None


class OpenTelemetryTracer:
    enabled = True

    def __init__(self, tracer_name: str) -> None:
        if trace is None:
            raise ImportError(
                "opentelemetry-api is not installed; install migrationbus[telemetry]"
            )
        self._tracer = trace.get_tracer(tracer_name)

    def span(
        self,
        name: str,
        attributes: SpanAttributes | None = None,
    ) -> AbstractContextManager[Span | None]:
        return self._tracer.start_as_current_span(name, attributes=attributes or {})


class MockTracer:
    """
    Tracer for tests: keeps (name, attributes) for every span opened.

    Example:
        >>> tracer = MockTracer()
        >>> executor = MigrationExecutor(..., tracer=tracer)
        >>> await executor.migrate_schema(None)
        >>> tracer.span_names
        ['migrationbus.migration.migrate']
    """

    enabled = True

    def __init__(self) -> None:
        self.spans: list[tuple[str, SpanAttributes | None]] = []

    @contextlib.contextmanager
    def span(self, name: str, attributes: SpanAttributes | None = None) -> Iterator[None]:
        self.spans.append((name, attributes))
        yield None

    @property
    def span_names(self) -> list[str]:
        return [name for name, _ in self.spans]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """Return an OpenTelemetryTracer when enabled and installed, else a NullTracer."""
    if enable_tracing and OTEL_AVAILABLE:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "OTEL_AVAILABLE",
    "SpanAttributes",
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
]
