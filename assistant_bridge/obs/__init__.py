"""
Observability module - Tracing, metrics, and logging.

Provides:
- OpenTelemetry distributed tracing
- In-process and Prometheus metrics
- Structured logging with trace correlation
- Tracing and timing decorators
"""

from .otel import setup_tracing, shutdown_tracing
from .metrics import metrics_registry, inc_counter, record_duration, set_gauge
from .prometheus_metrics import prometheus_metrics
from .logging_setup import setup_logging, get_logger
from .decorators import traced, timed

__all__ = [
    "setup_tracing",
    "shutdown_tracing",
    "metrics_registry",
    "inc_counter",
    "record_duration",
    "set_gauge",
    "prometheus_metrics",
    "setup_logging",
    "get_logger",
    "traced",
    "timed"
]
