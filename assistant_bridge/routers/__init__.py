"""
API routers module.

Provides:
- Health and liveness probes
- Readiness probe for the bot runtime
- JSON and Prometheus metrics
"""

from . import health, readiness, metrics

__all__ = [
    "health",
    "readiness",
    "metrics"
]
