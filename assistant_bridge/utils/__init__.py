"""
Utility functions and helpers.

Provides:
- Server-sent event line parsing for assistant run streams
"""

from .sse import parse_sse_line, parse_event_payload, DATA_PREFIX, DONE_SENTINEL

__all__ = [
    "parse_sse_line",
    "parse_event_payload",
    "DATA_PREFIX",
    "DONE_SENTINEL"
]
