"""Concrete repository for unanswered questions backed by SQLAlchemy."""

from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from statbot.application.interfaces import UnansweredQuestionRepository
from statbot.domain.entities import UnansweredQuestionFilter, UnansweredQuestionRecord
from statbot.infrastructure.database.models.unanswered_question import UnansweredQuestionModel


def _as_utc(value: datetime | None) -> datetime | None:
    """Normalize to aware UTC. SQLite hands back naive datetimes; everything stored is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLAlchemyUnansweredQuestionRepository(UnansweredQuestionRepository):
    """Implements the UnansweredQuestionRepository port using SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: UnansweredQuestionModel) -> UnansweredQuestionRecord:
        """Map ORM model → domain entity."""
        return UnansweredQuestionRecord(
            timestamp=_as_utc(model.timestamp),
            original_question=model.original_question,
            analysis=dict(model.analysis or {}),
            confidence=model.confidence,
            user_context=model.user_context,
            handled=model.handled,
            handled_at=_as_utc(model.handled_at),
        )

    def _to_model(self, entity: UnansweredQuestionRecord) -> UnansweredQuestionModel:
        """Map domain entity → ORM model."""
        return UnansweredQuestionModel(
            timestamp=_as_utc(entity.timestamp),
            original_question=entity.original_question,
            analysis=entity.analysis,
            confidence=entity.confidence,
            user_context=entity.user_context,
            handled=entity.handled,
            handled_at=_as_utc(entity.handled_at),
        )

    async def save(self, record: UnansweredQuestionRecord) -> UnansweredQuestionRecord:
        model = await self._session.merge(self._to_model(record))
        await self._session.flush()
        return self._to_entity(model)

    async def get(self, timestamp: datetime) -> UnansweredQuestionRecord | None:
        model = await self._session.get(UnansweredQuestionModel, _as_utc(timestamp))
        return self._to_entity(model) if model else None

    async def find(
        self, filters: UnansweredQuestionFilter
    ) -> tuple[list[UnansweredQuestionRecord], int]:
        conditions = []
        if filters.handled is not None:
            conditions.append(UnansweredQuestionModel.handled.is_(filters.handled))
        if filters.confidence_min is not None:
            conditions.append(UnansweredQuestionModel.confidence >= filters.confidence_min)
        if filters.confidence_max is not None:
            conditions.append(UnansweredQuestionModel.confidence <= filters.confidence_max)
        if filters.date_from is not None:
            conditions.append(UnansweredQuestionModel.timestamp >= _as_utc(filters.date_from))
        if filters.date_to is not None:
            conditions.append(UnansweredQuestionModel.timestamp <= _as_utc(filters.date_to))

        total = await self._session.scalar(
            select(func.count()).select_from(UnansweredQuestionModel).where(*conditions)
        )
        stmt = (
            select(UnansweredQuestionModel)
            .where(*conditions)
            .order_by(UnansweredQuestionModel.timestamp.desc())
            .offset(filters.offset)
            .limit(filters.limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()], int(total or 0)

    async def delete(self, timestamp: datetime) -> bool:
        model = await self._session.get(UnansweredQuestionModel, _as_utc(timestamp))
        if model is None:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def delete_all(self) -> int:
        result = await self._session.execute(delete(UnansweredQuestionModel))
        return result.rowcount or 0

    async def delete_handled_before(self, cutoff: datetime) -> int:
        result = await self._session.execute(
            delete(UnansweredQuestionModel).where(
                UnansweredQuestionModel.handled.is_(True),
                UnansweredQuestionModel.timestamp < _as_utc(cutoff),
            )
        )
        return result.rowcount or 0
