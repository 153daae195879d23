from .unanswered_question import UnansweredQuestionModel

__all__ = ["UnansweredQuestionModel"]
