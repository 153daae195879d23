"""FastAPI dependency injection - wires infrastructure to application layer."""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from statbot.config import get_settings
from statbot.application.services import ChatbotService, UnansweredQuestionService
from statbot.infrastructure.database.session import get_db_session
from statbot.infrastructure.database.repositories import SQLAlchemyUnansweredQuestionRepository


def get_chatbot_service(request: Request) -> ChatbotService:
    """Returns the process-wide ChatbotService built during startup."""
    service = getattr(request.app.state, "chatbot_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Chatbot is still starting up",
        )
    return service


async def get_unanswered_question_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[UnansweredQuestionService, None]:
    """Provides an UnansweredQuestionService with its repository wired up."""
    settings = get_settings()
    repository = SQLAlchemyUnansweredQuestionRepository(session)
    yield UnansweredQuestionService(repository, retention_days=settings.unanswered_retention_days)
