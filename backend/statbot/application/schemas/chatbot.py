"""Pydantic schemas for chatbot API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

# Mirrors Settings.max_question_length / max_user_context_length defaults;
# the controller re-checks against the live settings.
MAX_QUESTION_LENGTH = 1000
MAX_USER_CONTEXT_LENGTH = 200


# ── Request Schemas ──────────────────────────────────────────────────


class ChatbotRequest(BaseModel):
    """A natural-language statistics question."""

    question: str = Field(..., min_length=1, max_length=MAX_QUESTION_LENGTH)
    user_context: str | None = Field(
        default=None,
        max_length=MAX_USER_CONTEXT_LENGTH,
        alias="userContext",
        description="Previously selected player, used for first-person questions",
    )

    model_config = {"populate_by_name": True}

    @field_validator("question")
    @classmethod
    def _question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question must not be blank")
        return value

    @field_validator("user_context")
    @classmethod
    def _blank_context_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


# ── Response Schemas ─────────────────────────────────────────────────


class VisualizationSchema(BaseModel):
    type: str
    data: list[dict[str, Any]] = []
    config: dict[str, Any] = {}


class ChatbotResponseSchema(BaseModel):
    """Answer plus presentation hints; diagnostics only in debug mode."""

    answer: str
    sources: list[str] = []
    visualization: VisualizationSchema | None = None
    confidence: float = Field(..., ge=0.0, le=1.0)
    suggestions: list[str] = []
    answer_value: float | None = Field(default=None, serialization_alias="answerValue")
    cypher_query: str | None = Field(default=None, serialization_alias="cypherQuery")
    debug: dict[str, Any] | None = None
