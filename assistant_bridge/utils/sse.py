from __future__ import annotations
import json
from typing import Any, Dict, Optional, Type
from pydantic import BaseModel, ValidationError
from assistant_bridge.errors import MalformedEventError
from assistant_bridge.models.schemas import (
    MessageCompleted,
    MessageDelta,
    OtherEvent,
    StreamEvent,
    StreamTerminator,
)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

_EVENT_TYPES: Dict[str, Type[BaseModel]] = {
    "thread.message.delta": MessageDelta,
    "thread.message.completed": MessageCompleted,
}

def parse_event_payload(payload: str) -> StreamEvent:
    """Parse the payload of one ``data:`` line into a stream event."""
    if payload == DONE_SENTINEL:
        return StreamTerminator()

    try:
        record: Any = json.loads(payload)
    except (json.JSONDecodeError, RecursionError) as e:
        raise MalformedEventError(f"Invalid JSON in event: {e}") from e

    if not isinstance(record, dict):
        raise MalformedEventError(f"Expected a JSON object, got {type(record).__name__}")

    kind = record.get("object")
    model = _EVENT_TYPES.get(kind, OtherEvent) if isinstance(kind, str) else OtherEvent
    try:
        return model.model_validate(record)
    except ValidationError as e:
        raise MalformedEventError(f"Unexpected {record.get('object')} shape: {e}") from e

def parse_sse_line(line: str) -> Optional[StreamEvent]:
    """Parse one SSE line.

    Returns ``None`` for blank lines and for lines that are not ``data:``
    fields (``event:``, ``id:``, comments).
    """
    line = line.strip()
    if not line or not line.startswith(DATA_PREFIX):
        return None
    return parse_event_payload(line[len(DATA_PREFIX):])
