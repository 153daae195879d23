from .reference_data import ReferenceData, fetch_roster, load_reference_data
from .question_analyzer import QuestionAnalyzer
from .metric_team_resolver import MetricTeamResolver
from .query_synthesizer import QuerySynthesizer
from .answer_synthesizer import AnswerSynthesizer
from .unanswered_question_recorder import UnansweredQuestionRecorder
from .unanswered_question_service import UnansweredQuestionService
from .chatbot_service import ChatbotService

__all__ = [
    "ReferenceData",
    "fetch_roster",
    "load_reference_data",
    "QuestionAnalyzer",
    "MetricTeamResolver",
    "QuerySynthesizer",
    "AnswerSynthesizer",
    "UnansweredQuestionRecorder",
    "UnansweredQuestionService",
    "ChatbotService",
]
