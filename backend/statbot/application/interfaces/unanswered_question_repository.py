"""Abstract repository interface for unanswered questions."""

from abc import ABC, abstractmethod
from datetime import datetime

from statbot.domain.entities import UnansweredQuestionFilter, UnansweredQuestionRecord


class UnansweredQuestionRepository(ABC):
    """Port - defines persistence operations for the unanswered-question log."""

    @abstractmethod
    async def save(self, record: UnansweredQuestionRecord) -> UnansweredQuestionRecord:
        """Persist a record keyed by its timestamp.

        Writing a second record with the same timestamp replaces the first.
        """
        ...

    @abstractmethod
    async def get(self, timestamp: datetime) -> UnansweredQuestionRecord | None:
        ...

    @abstractmethod
    async def find(
        self, filters: UnansweredQuestionFilter
    ) -> tuple[list[UnansweredQuestionRecord], int]:
        """Return one page of records (newest first) and the total match count."""
        ...

    @abstractmethod
    async def delete(self, timestamp: datetime) -> bool:
        ...

    @abstractmethod
    async def delete_all(self) -> int:
        ...

    @abstractmethod
    async def delete_handled_before(self, cutoff: datetime) -> int:
        """Delete handled records whose timestamp is older than ``cutoff``."""
        ...
