from __future__ import annotations
from prometheus_client import Counter, Histogram, Gauge, Info, generate_latest, CONTENT_TYPE_LATEST
from assistant_bridge import __version__
from assistant_bridge.obs.logging_setup import get_logger

logger = get_logger(__name__)

CHAT_UPDATES_TOTAL = Counter(
    'chat_updates_total',
    'Chat updates received from the transport',
    ['kind']
)

QUERIES_TOTAL = Counter(
    'assistant_queries_total',
    'Assistant queries by outcome',
    ['outcome']
)

QUERY_DURATION = Histogram(
    'assistant_query_duration_seconds',
    'Time from dispatch to final answer',
    ['outcome'],
    buckets=(0.5, 1, 2.5, 5, 10, 20, 30, 60, 120, 300)
)

QUERIES_IN_FLIGHT = Gauge(
    'assistant_queries_in_flight',
    'Query tasks spawned and not yet finished'
)

STREAM_FRAGMENTS = Histogram(
    'assistant_stream_fragments',
    'Text fragments aggregated per run stream',
    buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000)
)

MALFORMED_EVENTS_TOTAL = Counter(
    'assistant_stream_malformed_events_total',
    'Run stream data lines that failed to parse'
)

REPLIES_TOTAL = Counter(
    'chat_replies_total',
    'Replies sent back to chats',
    ['status']
)

MEMORY_USAGE = Gauge(
    'process_memory_bytes',
    'Process memory usage in bytes'
)

SERVICE_INFO = Info(
    'service',
    'Service information'
)

class PrometheusMetrics:
    """Prometheus metrics collector with convenience methods."""

    def __init__(self):
        SERVICE_INFO.info({'version': __version__, 'service': 'assistant-bridge'})

    def record_update(self, kind: str):
        CHAT_UPDATES_TOTAL.labels(kind=kind).inc()

    def record_query(self, outcome: str, duration_seconds: float):
        QUERIES_TOTAL.labels(outcome=outcome).inc()
        QUERY_DURATION.labels(outcome=outcome).observe(duration_seconds)

    def query_started(self):
        QUERIES_IN_FLIGHT.inc()

    def query_finished(self):
        QUERIES_IN_FLIGHT.dec()

    def record_stream(self, fragments: int):
        STREAM_FRAGMENTS.observe(fragments)

    def record_malformed_event(self):
        MALFORMED_EVENTS_TOTAL.inc()

    def record_reply(self, status: str):
        REPLIES_TOTAL.labels(status=status).inc()

    def update_system_metrics(self, memory_bytes: float):
        MEMORY_USAGE.set(memory_bytes)

    def get_prometheus_metrics(self) -> bytes:
        return generate_latest()

    def get_content_type(self) -> str:
        return CONTENT_TYPE_LATEST

# Global Prometheus metrics instance
prometheus_metrics = PrometheusMetrics()
