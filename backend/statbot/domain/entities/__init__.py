from .question import (
    Complexity,
    PlayerRef,
    QuestionAnalysis,
    QuestionContext,
    QuestionEntities,
    QuestionType,
    RatePair,
    SeasonRef,
    TeamRef,
)
from .metric import Aggregation, FormatKind, MetricDefinition, MetricFormat
from .team import (
    CLUB_TEAM_KEY,
    TEAM_PATTERN,
    TEAMS,
    VETS_TEAM_KEY,
    TeamReference,
    normalize_team,
    team_display,
)
from .graph_query import GraphQuery
from .chatbot_response import ChatbotResponse, VisualizationSpec
from .unanswered_question import UnansweredQuestionFilter, UnansweredQuestionRecord

__all__ = [
    "Complexity",
    "PlayerRef",
    "QuestionAnalysis",
    "QuestionContext",
    "QuestionEntities",
    "QuestionType",
    "RatePair",
    "SeasonRef",
    "TeamRef",
    "Aggregation",
    "FormatKind",
    "MetricDefinition",
    "MetricFormat",
    "CLUB_TEAM_KEY",
    "TEAM_PATTERN",
    "TEAMS",
    "VETS_TEAM_KEY",
    "TeamReference",
    "normalize_team",
    "team_display",
    "GraphQuery",
    "ChatbotResponse",
    "VisualizationSpec",
    "UnansweredQuestionFilter",
    "UnansweredQuestionRecord",
]
