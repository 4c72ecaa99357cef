from __future__ import annotations
from typing import Any, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

class Query(BaseModel):
    """A user message captured from one chat update."""
    model_config = ConfigDict(frozen=True)

    chat_id: int
    user_id: Optional[int] = None
    text: str

class ChatUpdate(BaseModel):
    update_id: int
    chat_id: Optional[int] = None
    user_id: Optional[int] = None
    username: Optional[str] = None
    text: Optional[str] = None

class SessionIdentifiers(BaseModel):
    model_config = ConfigDict(frozen=True)

    assistant_id: str = Field(..., min_length=1)
    vector_store_id: str = Field(..., min_length=1)

# Assistant run stream events

class TextValue(BaseModel):
    value: Optional[str] = None

class ContentPart(BaseModel):
    type: Optional[str] = None
    text: Optional[TextValue] = None

class DeltaBody(BaseModel):
    content: List[ContentPart] = Field(default_factory=list)

    @field_validator("content", mode="before")
    @classmethod
    def _drop_unreadable_parts(cls, parts: Any) -> Any:
        # Parts of an unknown shape carry no text; keep their siblings.
        if not isinstance(parts, list):
            return parts
        kept = []
        for part in parts:
            try:
                kept.append(ContentPart.model_validate(part))
            except ValidationError:
                continue
        return kept

class MessageDelta(BaseModel):
    object: Literal["thread.message.delta"]
    delta: DeltaBody = Field(default_factory=DeltaBody)

    @property
    def fragments(self) -> List[str]:
        return [
            part.text.value
            for part in self.delta.content
            if part.text is not None and part.text.value is not None
        ]

class MessageCompleted(BaseModel):
    object: Literal["thread.message.completed"]

class OtherEvent(BaseModel):
    object: Optional[str] = None

class StreamTerminator(BaseModel):
    kind: Literal["done"] = "done"

StreamEvent = Union[MessageDelta, MessageCompleted, OtherEvent, StreamTerminator]
