from __future__ import annotations
import time
from collections import Counter, defaultdict, deque
from typing import Dict, Any, Deque, Optional
from threading import RLock

class MetricsRegistry:
    """In-process counters, duration samples and gauges for the JSON metrics view."""

    def __init__(self, histogram_size: int = 1000):
        self._lock = RLock()
        self._counters: Dict[str, Counter] = defaultdict(Counter)
        self._histograms: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=histogram_size))
        self._gauges: Dict[str, float] = {}

    def increment_counter(self, name: str, labels: Optional[Dict[str, str]] = None, value: float = 1.0):
        with self._lock:
            self._counters[name][self._make_key(name, labels)] += value

    def record_histogram(self, name: str, value: float, labels: Optional[Dict[str, str]] = None):
        with self._lock:
            self._histograms[self._make_key(name, labels)].append(value)

    def set_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None):
        with self._lock:
            self._gauges[self._make_key(name, labels)] = value

    def get_metrics(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "counters": {name: dict(values) for name, values in self._counters.items()},
                "histograms": self._summarize_histograms(),
                "gauges": dict(self._gauges),
                "timestamp": time.time()
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()
            self._gauges.clear()

    @staticmethod
    def _make_key(name: str, labels: Optional[Dict[str, str]] = None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def _summarize_histograms(self) -> Dict[str, Any]:
        summary = {}
        for key, points in self._histograms.items():
            if not points:
                continue
            values = sorted(points)
            n = len(values)
            summary[key] = {
                "count": n,
                "sum": sum(values),
                "min": values[0],
                "max": values[-1],
                "mean": sum(values) / n,
                "p50": values[int(n * 0.5)],
                "p95": values[min(int(n * 0.95), n - 1)],
                "p99": values[min(int(n * 0.99), n - 1)],
            }
        return summary

# Global metrics registry
metrics_registry = MetricsRegistry()

def inc_counter(name: str, labels: Optional[Dict[str, str]] = None, value: float = 1.0):
    """Increment counter."""
    metrics_registry.increment_counter(name, labels, value)

def record_duration(name: str, duration_ms: float, labels: Optional[Dict[str, str]] = None):
    """Record duration in milliseconds."""
    metrics_registry.record_histogram(name, duration_ms, labels)

def set_gauge(name: str, value: float, labels: Optional[Dict[str, str]] = None):
    """Set gauge value."""
    metrics_registry.set_gauge(name, value, labels)
