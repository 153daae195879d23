"""Best-effort triage log for weak answers.

The request path only enqueues (``put_nowait`` on a bounded queue); an
asyncio task started in FastAPI's lifespan drains the queue and persists
each record. Persistence failures are logged and dropped, so the recorder
can neither slow down nor break a response.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from statbot.domain.entities import (
    ChatbotResponse,
    QuestionAnalysis,
    QuestionContext,
    UnansweredQuestionRecord,
)

logger = logging.getLogger(__name__)

PersistRecord = Callable[[UnansweredQuestionRecord], Awaitable[object]]

# Seconds to wait for queued records to be written at shutdown
DRAIN_TIMEOUT = 5.0


class UnansweredQuestionRecorder:
    """Queues questions that needed clarification or scored below the threshold."""

    def __init__(
        self,
        persist: PersistRecord,
        threshold: float = 0.5,
        max_queue_size: int = 256,
        enabled: bool = True,
    ) -> None:
        self._persist = persist
        self._threshold = threshold
        self._enabled = enabled
        self._queue: asyncio.Queue[UnansweredQuestionRecord] = asyncio.Queue(maxsize=max_queue_size)
        self._task: asyncio.Task | None = None
        self.dropped = 0

    def should_record(self, analysis: QuestionAnalysis, response: ChatbotResponse) -> bool:
        if not self._enabled:
            return False
        return analysis.requires_clarification or response.confidence < self._threshold

    def observe(
        self,
        context: QuestionContext,
        analysis: QuestionAnalysis,
        response: ChatbotResponse,
    ) -> bool:
        """Enqueue a record if the outcome warrants one. Never raises.

        Returns True when a record was queued.
        """
        try:
            if not self.should_record(analysis, response):
                return False
            record = UnansweredQuestionRecord(
                original_question=context.question,
                analysis=analysis.snapshot(),
                confidence=response.confidence,
                user_context=context.user_context,
            )
            self._queue.put_nowait(record)
            logger.debug("Queued unanswered question at %s", record.timestamp.isoformat())
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "Unanswered-question queue full; dropped %r (total dropped: %d)",
                context.question[:80], self.dropped,
            )
            return False
        except Exception:
            logger.exception("Failed to queue unanswered question")
            return False

    async def start(self) -> None:
        """Start the background writer."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("UnansweredQuestionRecorder started (enabled=%s)", self._enabled)

    async def stop(self) -> None:
        """Flush pending records (bounded wait), then stop the writer."""
        if self._task is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=DRAIN_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(
                "UnansweredQuestionRecorder stopping with %d unsaved records", self._queue.qsize(),
            )
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("UnansweredQuestionRecorder stopped")

    async def drain(self) -> None:
        """Wait until every queued record has been handled."""
        await self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def _loop(self) -> None:
        while True:
            record = await self._queue.get()
            try:
                await self._persist(record)
                logger.info("Recorded unanswered question %r", record.original_question[:80])
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(
                    "Failed to persist unanswered question at %s", record.timestamp.isoformat(),
                )
            finally:
                self._queue.task_done()
