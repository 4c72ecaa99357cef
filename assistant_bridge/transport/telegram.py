from __future__ import annotations
import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional
import httpx
from pydantic import ValidationError
from assistant_bridge.config import (
    TELEGRAM_API_URL,
    TELEGRAM_BOT_TOKEN,
    TELEGRAM_POLL_TIMEOUT,
    HTTP_TIMEOUT_SECONDS,
)
from assistant_bridge.errors import ChatTransportError
from assistant_bridge.models.schemas import ChatUpdate
from assistant_bridge.obs.logging_setup import get_logger

logger = get_logger(__name__)

# Bot API limit for a single text message
MAX_MESSAGE_LENGTH = 4096

def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Split text into chunks the Bot API accepts, preferring line breaks."""
    chunks = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text:
        chunks.append(text)
    return chunks

def parse_update(raw: Dict[str, Any]) -> ChatUpdate:
    message = raw.get("message") or {}
    chat = message.get("chat") or {}
    sender = message.get("from") or {}
    return ChatUpdate(
        update_id=raw["update_id"],
        chat_id=chat.get("id"),
        user_id=sender.get("id"),
        username=sender.get("username"),
        text=message.get("text")
    )

class TelegramTransport:
    """Telegram Bot API long polling and message sending."""

    def __init__(
        self,
        token: str | None = TELEGRAM_BOT_TOKEN,
        api_url: str = TELEGRAM_API_URL,
        poll_timeout: int = TELEGRAM_POLL_TIMEOUT,
        error_pause_seconds: float = 3.0,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.poll_timeout = poll_timeout
        self.error_pause_seconds = error_pause_seconds
        self._offset: Optional[int] = None
        self._client = httpx.AsyncClient(
            base_url=f"{api_url.rstrip('/')}/bot{token}/",
            timeout=httpx.Timeout(HTTP_TIMEOUT_SECONDS, read=poll_timeout + HTTP_TIMEOUT_SECONDS),
            transport=transport
        )

    async def _call(self, method: str, payload: Dict[str, Any]) -> Any:
        try:
            response = await self._client.post(method, json=payload)
        except httpx.HTTPError as e:
            raise ChatTransportError(f"{method} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ChatTransportError(f"{method} returned non-JSON status {response.status_code}") from e

        if not isinstance(body, dict):
            raise ChatTransportError(f"{method} returned {type(body).__name__} instead of an object")

        if not body.get("ok"):
            raise ChatTransportError(
                f"{method} rejected: {body.get('description', response.status_code)}"
            )
        return body.get("result")

    async def get_me(self) -> Dict[str, Any]:
        return await self._call("getMe", {})

    async def get_updates(self) -> List[ChatUpdate]:
        payload: Dict[str, Any] = {"timeout": self.poll_timeout, "allowed_updates": ["message"]}
        if self._offset is not None:
            payload["offset"] = self._offset

        raw_updates = await self._call("getUpdates", payload) or []
        if not isinstance(raw_updates, list):
            raise ChatTransportError("getUpdates result is not a list")

        updates = []
        for raw in raw_updates:
            update_id = raw.get("update_id") if isinstance(raw, dict) else None
            if isinstance(update_id, int):
                self._offset = max(self._offset or 0, update_id + 1)
            try:
                updates.append(parse_update(raw))
            except (AttributeError, KeyError, TypeError, ValidationError) as e:
                logger.warning("Skipping unreadable update", update_id=update_id, error=str(e))
        return updates

    async def updates(self) -> AsyncIterator[ChatUpdate]:
        """Yield updates forever. Polling errors are logged and polling resumes."""
        while True:
            try:
                batch = await self.get_updates()
            except ChatTransportError as e:
                logger.error("Polling for updates failed", error=str(e))
                await asyncio.sleep(self.error_pause_seconds)
                continue

            for update in batch:
                yield update

    async def send_message(self, chat_id: int, text: str) -> None:
        for chunk in split_message(text):
            await self._call("sendMessage", {"chat_id": chat_id, "text": chunk})

    async def aclose(self) -> None:
        await self._client.aclose()
