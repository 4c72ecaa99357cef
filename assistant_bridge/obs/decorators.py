from __future__ import annotations
import time
import inspect
import functools
from typing import Callable, Dict, Optional
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from assistant_bridge.obs.metrics import record_duration

def traced(operation_name: Optional[str] = None, record_errors: bool = True):
    """Run a coroutine function inside an OpenTelemetry span.

    Exceptions are recorded on the span and re-raised unchanged.
    """

    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"traced() expects a coroutine function, got {func.__name__}")

        tracer = trace.get_tracer(func.__module__)
        span_name = operation_name or f"{func.__module__}.{func.__name__}"

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            with tracer.start_as_current_span(span_name, record_exception=False) as span:
                span.set_attribute("code.function", func.__name__)
                span.set_attribute("code.namespace", func.__module__)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    if record_errors:
                        span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator

def timed(metric_name: Optional[str] = None, labels: Optional[Dict[str, str]] = None):
    """Decorator to time a coroutine function and record the duration in milliseconds."""

    def decorator(func: Callable) -> Callable:
        name = metric_name or f"{func.__name__}_duration_ms"

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                record_duration(name, (time.perf_counter() - start_time) * 1000, labels)

        return wrapper

    return decorator
