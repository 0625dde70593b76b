"""
Tracing for sync runs using OpenTelemetry.

Spans cover connecting, schema introspection, snapshot loading and each
diff pass.
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
]
