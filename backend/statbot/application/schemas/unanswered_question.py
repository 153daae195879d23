"""Pydantic schemas for the unanswered-question admin API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class UnansweredQuestionSchema(BaseModel):
    timestamp: datetime
    original_question: str
    analysis: dict[str, Any] = {}
    confidence: float | None = None
    user_context: str | None = None
    handled: bool = False
    handled_at: datetime | None = None


class UnansweredQuestionListSchema(BaseModel):
    items: list[UnansweredQuestionSchema] = []
    total: int = 0
    limit: int
    offset: int


class MarkHandledRequest(BaseModel):
    timestamp: datetime = Field(..., description="Timestamp key of the record to mark handled")


class DeletedCountSchema(BaseModel):
    deleted: int
