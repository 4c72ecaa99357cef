from __future__ import annotations
import asyncio
import time
from typing import AsyncIterable, Optional, Protocol, Set
from assistant_bridge.config import (
    MAX_CONCURRENT_QUERIES,
    QUERY_TIMEOUT_SECONDS,
    ERROR_REPLY_TEXT,
    NO_ANSWER_REPLY_TEXT,
)
from assistant_bridge.errors import EmptyResponseError
from assistant_bridge.models.schemas import ChatUpdate, Query
from assistant_bridge.obs.logging_setup import get_logger
from assistant_bridge.obs.metrics import inc_counter, set_gauge
from assistant_bridge.obs.prometheus_metrics import prometheus_metrics

logger = get_logger(__name__)

class Answerer(Protocol):
    async def ask(self, query_text: str) -> str: ...

class ReplySink(Protocol):
    async def send_message(self, chat_id: int, text: str) -> None: ...

class SessionRouter:
    """Turns chat updates into independent query tasks.

    Intake never waits for a query to finish. Each task works on its own
    immutable ``Query`` and replies only to the chat it came from. The
    semaphore bounds how many backend calls run at once; tasks beyond the
    bound wait for a slot without holding up intake.
    """

    def __init__(
        self,
        assistant: Answerer,
        chat: ReplySink,
        max_concurrent: int = MAX_CONCURRENT_QUERIES,
        query_timeout: Optional[float] = QUERY_TIMEOUT_SECONDS,
        error_reply: str = ERROR_REPLY_TEXT,
        no_answer_reply: str = NO_ANSWER_REPLY_TEXT
    ):
        self.assistant = assistant
        self.chat = chat
        self.query_timeout = query_timeout
        self.error_reply = error_reply
        self.no_answer_reply = no_answer_reply
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: Set[asyncio.Task] = set()
        self.running = False

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, updates: AsyncIterable[ChatUpdate]) -> None:
        """Consume the update feed until it ends or the router is cancelled."""
        self.running = True
        logger.info("Session router started", max_concurrent=self.max_concurrent)
        try:
            async for update in updates:
                self.dispatch(update)
        finally:
            self.running = False
            logger.info("Session router stopped", in_flight=self.in_flight)

    def dispatch(self, update: ChatUpdate) -> Optional[asyncio.Task]:
        """Spawn a query task for an update carrying text, else ignore it."""
        if not update.text or update.chat_id is None:
            prometheus_metrics.record_update("ignored")
            return None

        prometheus_metrics.record_update("text")
        query = Query(chat_id=update.chat_id, user_id=update.user_id, text=update.text)
        logger.info(
            "Received query",
            chat_id=query.chat_id,
            user_id=query.user_id,
            username=update.username,
            query_length=len(query.text)
        )

        task = asyncio.create_task(self.handle_query(query), name=f"query-{update.update_id}")
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        set_gauge("queries_in_flight", self.in_flight)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        set_gauge("queries_in_flight", self.in_flight)

    async def _ask(self, query: Query) -> str:
        async with self._semaphore:
            if self.query_timeout is None:
                return await self.assistant.ask(query.text)
            return await asyncio.wait_for(self.assistant.ask(query.text), timeout=self.query_timeout)

    async def handle_query(self, query: Query) -> None:
        """Answer one query and reply to its chat. Never raises on query failure."""
        prometheus_metrics.query_started()
        start_time = time.perf_counter()

        try:
            answer = await self._ask(query)
        except EmptyResponseError:
            logger.warning("Assistant returned an empty answer", chat_id=query.chat_id)
            outcome, reply = "empty", self.no_answer_reply
        except asyncio.TimeoutError:
            logger.error("Query timed out", chat_id=query.chat_id, timeout_seconds=self.query_timeout)
            outcome, reply = "timeout", self.error_reply
        except Exception as e:
            logger.error("Query failed", chat_id=query.chat_id, error=str(e), exc_info=True)
            outcome, reply = "error", self.error_reply
        else:
            if answer:
                outcome, reply = "success", answer
            else:
                logger.warning("Assistant returned an empty answer", chat_id=query.chat_id)
                outcome, reply = "empty", self.no_answer_reply
        finally:
            prometheus_metrics.query_finished()

        prometheus_metrics.record_query(outcome, time.perf_counter() - start_time)
        inc_counter("queries_total", {"outcome": outcome})

        await self._reply(query, reply)

    async def _reply(self, query: Query, text: str) -> None:
        try:
            await self.chat.send_message(query.chat_id, text)
        except Exception as e:
            prometheus_metrics.record_reply("failed")
            logger.error("Failed to send reply", chat_id=query.chat_id, error=str(e))
            return

        prometheus_metrics.record_reply("sent")
        logger.info("Reply sent", chat_id=query.chat_id, user_id=query.user_id, reply_length=len(text))

    async def wait_idle(self) -> None:
        """Wait until every spawned query task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel outstanding query tasks."""
        for task in list(self._tasks):
            task.cancel()
        await self.wait_idle()
