"""Admin operations over the unanswered-question log."""

import logging
from datetime import datetime, timedelta, timezone

from statbot.application.interfaces import UnansweredQuestionRepository
from statbot.domain.entities import UnansweredQuestionFilter, UnansweredQuestionRecord
from statbot.domain.exceptions import EntityNotFoundError

logger = logging.getLogger(__name__)


class UnansweredQuestionService:
    """Application service - triage of questions the chatbot could not answer."""

    def __init__(self, repository: UnansweredQuestionRepository, retention_days: int = 30):
        self._repo = repository
        self._retention_days = retention_days

    async def list_questions(
        self, filters: UnansweredQuestionFilter | None = None
    ) -> tuple[list[UnansweredQuestionRecord], int]:
        return await self._repo.find(filters or UnansweredQuestionFilter())

    async def get_question(self, timestamp: datetime) -> UnansweredQuestionRecord:
        record = await self._repo.get(timestamp)
        if record is None:
            raise EntityNotFoundError("UnansweredQuestion", timestamp.isoformat())
        return record

    async def mark_handled(self, timestamp: datetime) -> UnansweredQuestionRecord:
        record = await self.get_question(timestamp)
        if not record.handled:
            record.handled = True
            record.handled_at = datetime.now(timezone.utc)
            record = await self._repo.save(record)
            logger.info("Marked unanswered question %s as handled", timestamp.isoformat())
        return record

    async def delete_question(self, timestamp: datetime) -> None:
        deleted = await self._repo.delete(timestamp)
        if not deleted:
            raise EntityNotFoundError("UnansweredQuestion", timestamp.isoformat())

    async def delete_all(self) -> int:
        count = await self._repo.delete_all()
        logger.info("Deleted all %d unanswered questions", count)
        return count

    async def delete_handled_older_than(self, days: int | None = None) -> int:
        """Purge handled records older than ``days`` (default: retention setting).

        Raises:
            ValueError: if ``days`` is negative.
        """
        days = self._retention_days if days is None else days
        if days < 0:
            raise ValueError("days must be zero or positive")
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        count = await self._repo.delete_handled_before(cutoff)
        logger.info("Purged %d handled unanswered questions older than %d days", count, days)
        return count
