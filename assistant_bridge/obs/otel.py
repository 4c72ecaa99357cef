from __future__ import annotations
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased, ALWAYS_ON
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.b3 import B3MultiFormat
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from assistant_bridge import __version__
from assistant_bridge.config import (
    ENVIRONMENT,
    OTEL_CONSOLE_EXPORT,
    OTEL_EXPORTER_OTLP_ENDPOINT,
    OTEL_SAMPLE_RATE,
    OTEL_SERVICE_NAME,
)
from assistant_bridge.obs.logging_setup import get_logger

logger = get_logger(__name__)

def setup_tracing() -> None:
    """Initialize OpenTelemetry tracing."""

    set_global_textmap(B3MultiFormat())

    resource = Resource.create({
        "service.name": OTEL_SERVICE_NAME,
        "service.version": __version__,
        "deployment.environment": ENVIRONMENT
    })

    sampler = ALWAYS_ON if OTEL_SAMPLE_RATE >= 1.0 else TraceIdRatioBased(OTEL_SAMPLE_RATE)
    tracer_provider = TracerProvider(resource=resource, sampler=sampler)

    if OTEL_EXPORTER_OTLP_ENDPOINT:
        otlp_exporter = OTLPSpanExporter(
            endpoint=f"{OTEL_EXPORTER_OTLP_ENDPOINT}/v1/traces",
            timeout=10
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(
            otlp_exporter,
            max_queue_size=512,
            max_export_batch_size=256,
            export_timeout_millis=30000
        ))
        logger.info("OTLP exporter configured", endpoint=OTEL_EXPORTER_OTLP_ENDPOINT)
    elif OTEL_CONSOLE_EXPORT:
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console span exporter configured")
    else:
        logger.warning("No OTLP endpoint configured, spans are not exported")

    trace.set_tracer_provider(tracer_provider)

    HTTPXClientInstrumentor().instrument()
    LoggingInstrumentor().instrument(set_logging_format=False)

    logger.info("OpenTelemetry configured", service=OTEL_SERVICE_NAME)

def shutdown_tracing() -> None:
    tracer_provider = trace.get_tracer_provider()
    if hasattr(tracer_provider, "shutdown"):
        tracer_provider.shutdown()
