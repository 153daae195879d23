from .graph_store import GraphStore
from .unanswered_question_repository import UnansweredQuestionRepository

__all__ = [
    "GraphStore",
    "UnansweredQuestionRepository",
]
