"""Context managers and helpers for spans around sync operations."""

from contextlib import contextmanager

from opentelemetry import trace

from .tracer import get_tracer


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Run a block inside a span, recording any exception on it.

    Example:
        >>> with trace_operation("introspect_table", table="shop.orders") as span:
        ...     schema = introspect_table(conn, "shop.orders")
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(operation_name, kind=kind) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            raise


def add_span_attributes(**attributes):
    """Add attributes to the current span, if it is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        for key, value in attributes.items():
            current_span.set_attribute(key, str(value))


def add_span_event(name: str, **attributes):
    """Add an event to the current span, if it is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        current_span.add_event(name, attributes={k: str(v) for k, v in attributes.items()})
