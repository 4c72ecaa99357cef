"""
Data models and schemas.

Provides:
- Chat-side models (updates, captured queries)
- Assistant run stream events
- Provisioned session identifiers
"""

from .schemas import (
    Query,
    ChatUpdate,
    SessionIdentifiers,
    StreamEvent,
    MessageDelta,
    MessageCompleted,
    OtherEvent,
    StreamTerminator
)

__all__ = [
    "Query",
    "ChatUpdate",
    "SessionIdentifiers",
    "StreamEvent",
    "MessageDelta",
    "MessageCompleted",
    "OtherEvent",
    "StreamTerminator"
]
