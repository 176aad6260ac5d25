"""
Distributed tracing using OpenTelemetry.

Spans cover connection setup, each scrape, each scrape task and each
custom query. Without an OTLP endpoint the global tracer provider is left
alone and every span is a no-op.
"""

import logging
import os
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

_TRACER_NAME = "altibase_exporter"
_is_initialized = False


def initialize_tracing(
    service_name: str = "altibase-exporter",
    otlp_endpoint: str | None = None,
) -> bool:
    """
    Initialize span export when an OTLP endpoint is configured.

    Args:
        service_name: Name of the service for identification
        otlp_endpoint: OTLP collector endpoint (falls back to OTLP_ENDPOINT)

    Returns:
        True if an exporter was installed
    """
    global _is_initialized

    if _is_initialized:
        logger.warning("Tracing already initialized")
        return True

    otlp_endpoint = otlp_endpoint or os.getenv("OTLP_ENDPOINT", "").strip()
    if not otlp_endpoint:
        logger.debug("No OTLP endpoint configured, tracing is a no-op")
        return False

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(provider)
    _is_initialized = True

    logger.info(f"Tracing initialized: service={service_name} endpoint={otlp_endpoint}")
    return True


def get_tracer() -> trace.Tracer:
    """Get the exporter tracer from the current global provider."""
    return trace.get_tracer(_TRACER_NAME)


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down."""
    global _is_initialized

    if not _is_initialized:
        return

    try:
        provider = trace.get_tracer_provider()
        if hasattr(provider, "shutdown"):
            provider.shutdown()
        logger.info("Tracing shutdown complete")
    except Exception as e:
        logger.error(f"Error during tracing shutdown: {e}")
    finally:
        _is_initialized = False


def _attribute_value(value):
    # OTel accepts str, bool, int and float; anything else is stringified
    if isinstance(value, (str, bool, int, float)):
        return value
    return str(value)


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes,
):
    """
    Span around one exporter operation.

    Keyword attributes are recorded under the ``altibase.`` namespace. A
    raised exception marks the span as failed and propagates unchanged.

    Example:
        >>> with trace_operation("altibase.custom_query", metric="altibase_custom_sessions"):
        ...     rows = executor.query(sql)
    """
    with get_tracer().start_as_current_span(
        operation_name, kind=kind, record_exception=False, set_status_on_exception=False
    ) as span:
        for key, value in attributes.items():
            span.set_attribute(f"altibase.{key}", _attribute_value(value))

        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, f"{type(e).__name__}: {e}"))
            raise
