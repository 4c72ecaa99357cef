from __future__ import annotations
from contextlib import aclosing
from typing import List
import httpx
from assistant_bridge.errors import EmptyResponseError, MalformedEventError
from assistant_bridge.models.schemas import MessageCompleted, MessageDelta, StreamTerminator
from assistant_bridge.obs.decorators import traced
from assistant_bridge.obs.logging_setup import get_logger
from assistant_bridge.obs.prometheus_metrics import prometheus_metrics
from assistant_bridge.utils.sse import parse_sse_line

logger = get_logger(__name__)

@traced(operation_name="aggregate_run_stream")
async def aggregate_stream(response: httpx.Response) -> str:
    """Fold an assistant run event stream into the final answer text.

    Reading stops at ``data: [DONE]``, at a ``thread.message.completed``
    event, or at end of stream, whichever comes first. Malformed events are
    skipped. The response is closed on every exit path; read errors propagate
    and discard whatever was accumulated.

    Raises:
        EmptyResponseError: the stream carried no answer text.
    """
    fragments: List[str] = []

    try:
        async with aclosing(response.aiter_lines()) as lines:
            async for line in lines:
                try:
                    event = parse_sse_line(line)
                except MalformedEventError as e:
                    prometheus_metrics.record_malformed_event()
                    logger.warning("Skipping malformed stream event", error=str(e))
                    continue

                if event is None:
                    continue

                if isinstance(event, StreamTerminator):
                    logger.debug("Run stream finished")
                    break

                if isinstance(event, MessageDelta):
                    fragments.extend(event.fragments)
                elif isinstance(event, MessageCompleted):
                    logger.debug("Assistant message completed")
                    break
    finally:
        await response.aclose()

    answer = "".join(fragments)
    prometheus_metrics.record_stream(len(fragments))
    logger.debug("Aggregated assistant answer", fragments=len(fragments), answer_length=len(answer))

    if not answer:
        raise EmptyResponseError("Empty response from assistant")

    return answer
