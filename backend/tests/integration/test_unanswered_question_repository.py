"""Integration tests for SQLAlchemyUnansweredQuestionRepository on in-memory SQLite."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from statbot.domain.entities import UnansweredQuestionFilter, UnansweredQuestionRecord
from statbot.infrastructure.database import Base
from statbot.infrastructure.database.repositories import SQLAlchemyUnansweredQuestionRepository

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def repository(session) -> SQLAlchemyUnansweredQuestionRepository:
    return SQLAlchemyUnansweredQuestionRepository(session)


def _record(
    minutes_ago: int,
    confidence: float = 0.3,
    handled: bool = False,
    question: str | None = None,
    **kwargs,
):
    return UnansweredQuestionRecord(
        original_question=question or f"question {minutes_ago}",
        confidence=confidence,
        handled=handled,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_save_and_get_round_trip(repository):
    record = _record(
        0,
        analysis={"type": "ClubAggregate", "metrics": [], "requires_clarification": True},
        user_context="Luke Bangs",
    )

    await repository.save(record)
    loaded = await repository.get(NOW)

    assert loaded.original_question == record.original_question
    assert loaded.analysis["requires_clarification"] is True
    assert loaded.user_context == "Luke Bangs"
    assert loaded.timestamp == NOW
    assert loaded.timestamp.tzinfo is not None


@pytest.mark.asyncio
async def test_same_question_twice_is_two_records(repository):
    await repository.save(_record(2, question="What's the weather?"))
    await repository.save(_record(1, question="What's the weather?"))

    records, total = await repository.find(UnansweredQuestionFilter())

    assert total == 2
    assert [r.timestamp for r in records] == [NOW - timedelta(minutes=1), NOW - timedelta(minutes=2)]


@pytest.mark.asyncio
async def test_save_same_timestamp_replaces(repository):
    await repository.save(_record(0, question="first"))
    await repository.save(_record(0, question="second"))

    records, total = await repository.find(UnansweredQuestionFilter())

    assert total == 1
    assert records[0].original_question == "second"


@pytest.mark.asyncio
async def test_find_filters_and_paginates(repository):
    await repository.save(_record(3, confidence=0.1))
    await repository.save(_record(2, confidence=0.3, handled=True))
    await repository.save(_record(1, confidence=0.45))

    low, low_total = await repository.find(UnansweredQuestionFilter(confidence_max=0.3))
    handled, handled_total = await repository.find(UnansweredQuestionFilter(handled=True))
    recent, _ = await repository.find(UnansweredQuestionFilter(date_from=NOW - timedelta(minutes=2)))
    page, page_total = await repository.find(UnansweredQuestionFilter(limit=1, offset=1))

    assert low_total == 2
    assert handled_total == 1 and handled[0].confidence == 0.3
    assert len(recent) == 2
    assert page_total == 3
    assert page[0].timestamp == NOW - timedelta(minutes=2)


@pytest.mark.asyncio
async def test_delete_and_delete_all(repository):
    await repository.save(_record(2))
    await repository.save(_record(1))

    assert await repository.delete(NOW - timedelta(minutes=2)) is True
    assert await repository.delete(NOW - timedelta(minutes=2)) is False
    assert await repository.delete_all() == 1


@pytest.mark.asyncio
async def test_delete_handled_before_keeps_unhandled(repository):
    await repository.save(_record(60 * 24 * 40, handled=True))
    await repository.save(_record(60 * 24 * 41, question="old but open"))
    await repository.save(_record(60, handled=True))

    deleted = await repository.delete_handled_before(NOW - timedelta(days=30))
    remaining, total = await repository.find(UnansweredQuestionFilter())

    assert deleted == 1
    assert total == 2
    assert all(not r.handled or r.timestamp > NOW - timedelta(days=30) for r in remaining)
