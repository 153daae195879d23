"""Domain entities for chatbot answers."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class VisualizationSpec:
    """Presentation hint accompanying an answer.

    ``type`` is "number" for a single value (card keyed by canonical metric)
    or "bar" for a labelled series where the maximum carries ``is_max``.
    """

    type: str
    data: list[dict[str, Any]] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatbotResponse:
    answer: str
    confidence: float
    sources: list[str] = field(default_factory=list)
    visualization: VisualizationSpec | None = None
    suggestions: list[str] = field(default_factory=list)
    answer_value: float | None = None
    cypher_query: str | None = None
    debug: dict[str, Any] | None = None
