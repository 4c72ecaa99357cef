from __future__ import annotations
from typing import Any, Dict
import httpx
from assistant_bridge.config import (
    OPENAI_API_URL,
    OPENAI_API_KEY,
    OPENAI_BETA_HEADER,
    HTTP_TIMEOUT_SECONDS,
    QUERY_TIMEOUT_SECONDS,
)
from assistant_bridge.errors import DispatchError
from assistant_bridge.models.schemas import SessionIdentifiers
from assistant_bridge.obs.decorators import traced
from assistant_bridge.obs.logging_setup import get_logger
from assistant_bridge.services.aggregator import aggregate_stream

logger = get_logger(__name__)

# Fixed sampling parameters for every run
RUN_TEMPERATURE = 1.0
RUN_TOP_P = 1.0

def create_openai_http_client(
    api_url: str = OPENAI_API_URL,
    api_key: str | None = OPENAI_API_KEY,
    transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """Shared async client for the Assistants API."""
    return httpx.AsyncClient(
        base_url=api_url,
        headers={
            "Authorization": f"Bearer {api_key}",
            "OpenAI-Beta": OPENAI_BETA_HEADER,
        },
        timeout=httpx.Timeout(HTTP_TIMEOUT_SECONDS, read=QUERY_TIMEOUT_SECONDS),
        transport=transport
    )

def build_run_request(identifiers: SessionIdentifiers, query_text: str) -> Dict[str, Any]:
    """Body for a one-shot streamed run on a fresh thread."""
    return {
        "assistant_id": identifiers.assistant_id,
        "thread": {
            "messages": [
                {"role": "user", "content": query_text}
            ]
        },
        "tool_resources": {
            "file_search": {
                "vector_store_ids": [identifiers.vector_store_id]
            }
        },
        "temperature": RUN_TEMPERATURE,
        "top_p": RUN_TOP_P,
        "stream": True,
    }

class AssistantClient:
    """Dispatches queries as streamed assistant runs."""

    def __init__(self, http_client: httpx.AsyncClient, identifiers: SessionIdentifiers):
        self.http_client = http_client
        self.identifiers = identifiers

    @traced(operation_name="open_run_stream")
    async def open_run_stream(self, query_text: str) -> httpx.Response:
        """Start a streamed run and return the open response.

        The caller owns the returned response and must close it.
        """
        request = self.http_client.build_request(
            "POST",
            "threads/runs",
            json=build_run_request(self.identifiers, query_text)
        )

        logger.debug("Sending run request", assistant_id=self.identifiers.assistant_id)

        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise DispatchError(f"Run request failed: {e}") from e

        if response.is_error:
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            finally:
                await response.aclose()
            logger.error("Run request rejected", status_code=response.status_code, body=body[:500])
            raise DispatchError(
                f"Run request rejected with status {response.status_code}",
                status_code=response.status_code
            )

        return response

    async def ask(self, query_text: str) -> str:
        """Run one query and return the aggregated answer."""
        response = await self.open_run_stream(query_text)
        return await aggregate_stream(response)
