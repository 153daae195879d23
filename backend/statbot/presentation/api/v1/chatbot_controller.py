"""Chatbot endpoint - answers natural-language statistics questions."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from statbot.application.schemas.chatbot import (
    ChatbotRequest,
    ChatbotResponseSchema,
    VisualizationSchema,
)
from statbot.application.services import ChatbotService
from statbot.config import get_settings
from statbot.domain.entities import ChatbotResponse, QuestionContext
from statbot.infrastructure.dependencies import get_chatbot_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chatbot", tags=["Chatbot"])


@router.post("", response_model=ChatbotResponseSchema, response_model_exclude_none=True)
async def ask_question(
    body: ChatbotRequest,
    service: ChatbotService = Depends(get_chatbot_service),
) -> ChatbotResponseSchema:
    """Answer a question about club statistics.

    Returns HTTP 200 for every well-formed question, including ones the
    engine cannot answer; those carry a clarification and a low confidence.
    """
    settings = get_settings()
    if len(body.question) > settings.max_question_length:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"question must be at most {settings.max_question_length} characters",
        )
    if body.user_context and len(body.user_context) > settings.max_user_context_length:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"user_context must be at most {settings.max_user_context_length} characters",
        )

    context = QuestionContext(question=body.question.strip(), user_context=body.user_context)
    response = await service.ask(context)
    return _to_response_schema(response)


def _to_response_schema(response: ChatbotResponse) -> ChatbotResponseSchema:
    visualization = None
    if response.visualization is not None:
        visualization = VisualizationSchema(
            type=response.visualization.type,
            data=response.visualization.data,
            config=response.visualization.config,
        )
    return ChatbotResponseSchema(
        answer=response.answer,
        sources=response.sources,
        visualization=visualization,
        confidence=response.confidence,
        suggestions=response.suggestions,
        answer_value=response.answer_value,
        cypher_query=response.cypher_query,
        debug=response.debug,
    )
