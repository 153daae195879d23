from .chatbot import ChatbotRequest, ChatbotResponseSchema, VisualizationSchema
from .unanswered_question import (
    DeletedCountSchema,
    MarkHandledRequest,
    UnansweredQuestionListSchema,
    UnansweredQuestionSchema,
)

__all__ = [
    "ChatbotRequest",
    "ChatbotResponseSchema",
    "VisualizationSchema",
    "DeletedCountSchema",
    "MarkHandledRequest",
    "UnansweredQuestionListSchema",
    "UnansweredQuestionSchema",
]
