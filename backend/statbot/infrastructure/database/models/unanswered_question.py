"""SQLAlchemy ORM model for unanswered questions."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from statbot.infrastructure.database.base import Base


class UnansweredQuestionModel(Base):
    """ORM model - maps to the 'unanswered_questions' table.

    The timestamp is the primary key: records are never deduplicated by
    content, and a write with an existing timestamp replaces that row.
    """

    __tablename__ = "unanswered_questions"

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    original_question: Mapped[str] = mapped_column(Text, nullable=False)
    analysis: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    user_context: Mapped[str | None] = mapped_column(String(255), nullable=True)
    handled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    handled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<UnansweredQuestionModel(timestamp='{self.timestamp}', "
            f"handled={self.handled}, confidence={self.confidence})>"
        )
