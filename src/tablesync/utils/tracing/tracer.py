"""
Tracer initialization for OpenTelemetry.

Spans are exported over OTLP when ``OTLP_ENDPOINT`` (or an explicit
endpoint) is configured, and to stderr when console export is requested.
Without an exporter the provider still records spans, it just sends them
nowhere.
"""

import logging
import os
import sys

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

_tracer: trace.Tracer | None = None
_is_initialized = False


def initialize_tracing(
    service_name: str = "tablesync",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Initialize tracing with OpenTelemetry.

    Args:
        service_name: Name of the service for identification
        otlp_endpoint: OTLP collector endpoint (e.g., "localhost:4317");
            defaults to the ``OTLP_ENDPOINT`` environment variable
        console_export: Also export spans to stderr (debugging)

    Returns:
        Configured tracer instance
    """
    global _tracer, _is_initialized

    if _is_initialized:
        return _tracer

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    exporters = []

    otlp_endpoint = otlp_endpoint or os.getenv("OTLP_ENDPOINT")
    if otlp_endpoint:
        # Imported lazily: the gRPC exporter is slow to import
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        exporters.append("OTLP")
        logger.info(f"OTLP exporter configured: {otlp_endpoint}")

    if console_export or os.getenv("TRACE_CONSOLE", "").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
        exporters.append("Console")

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(service_name)
    _is_initialized = True

    logger.debug(f"Tracing initialized: {service_name} (exporters: {', '.join(exporters) or 'none'})")
    return _tracer


def get_tracer() -> trace.Tracer:
    """Return the global tracer, initializing tracing with defaults if needed."""
    global _tracer

    if _tracer is None:
        _tracer = initialize_tracing()

    return _tracer


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down."""
    global _is_initialized

    if not _is_initialized:
        return

    try:
        provider = trace.get_tracer_provider()
        if hasattr(provider, "shutdown"):
            provider.shutdown()
    finally:
        _is_initialized = False
