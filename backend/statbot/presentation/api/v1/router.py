"""V1 API router - aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from statbot.presentation.api.v1.endpoints.health import router as health_router
from statbot.presentation.api.v1.chatbot_controller import router as chatbot_router
from statbot.presentation.api.v1.unanswered_questions_controller import (
    router as unanswered_questions_router,
)

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(chatbot_router)
router.include_router(unanswered_questions_router)
