"""Domain entities for the unanswered-question triage log."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class UnansweredQuestionRecord:
    """A question the engine could not answer confidently.

    Keyed by ``timestamp`` rather than by content, so the same phrasing asked
    ten times shows up ten times.
    """

    original_question: str
    analysis: dict[str, Any] = field(default_factory=dict)
    confidence: float | None = None
    user_context: str | None = None
    handled: bool = False
    handled_at: datetime | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class UnansweredQuestionFilter:
    """Admin listing filters; ``None`` means "do not filter on this"."""

    handled: bool | None = None
    confidence_min: float | None = None
    confidence_max: float | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int = 100
    offset: int = 0
