from .unanswered_question_repository import SQLAlchemyUnansweredQuestionRepository

__all__ = ["SQLAlchemyUnansweredQuestionRepository"]
