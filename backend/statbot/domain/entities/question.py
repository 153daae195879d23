"""Domain entities for question analysis: what the user asked, before and after resolution."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class QuestionType(str, Enum):
    SINGLE_STAT = "SingleStat"
    TEAM_STAT = "TeamStat"
    RANKING = "Ranking"
    RATE = "Rate"
    COMPARISON = "Comparison"
    CLUB_AGGREGATE = "ClubAggregate"


class Complexity(str, Enum):
    SIMPLE = "Simple"
    MODERATE = "Moderate"
    COMPLEX = "Complex"


@dataclass(frozen=True)
class QuestionContext:
    """One incoming question plus the optional previously selected player."""

    question: str
    user_context: str | None = None


@dataclass
class PlayerRef:
    """A player mention.

    ``surface`` is the text as written ("Luke Bangs", "I", "my");
    ``name`` is the canonical roster name once resolved.
    """

    surface: str
    name: str | None = None
    first_person: bool = False


@dataclass
class TeamRef:
    """A team mention; ``key`` is the canonical team key ("1s", "Vets", "club")."""

    surface: str
    key: str | None = None


@dataclass
class SeasonRef:
    surface: str
    label: str  # normalised "2019/20"


@dataclass
class RatePair:
    """Numerator/denominator of a rate question.

    Surface strings before resolution, canonical metric keys afterwards.
    """

    numerator: str
    denominator: str


@dataclass
class QuestionEntities:
    player: PlayerRef | None = None
    teams: list[TeamRef] = field(default_factory=list)
    seasons: list[SeasonRef] = field(default_factory=list)


@dataclass
class QuestionAnalysis:
    """Structured reading of a question.

    Produced by the QuestionAnalyzer with raw surface strings and enriched
    in place by the MetricTeamResolver, after which ``metrics`` holds
    canonical metric keys and every team carries its canonical key.
    """

    question: str
    type: QuestionType
    entities: QuestionEntities = field(default_factory=QuestionEntities)
    metrics: list[str] = field(default_factory=list)
    complexity: Complexity = Complexity.SIMPLE
    requires_clarification: bool = False
    clarification_reason: str | None = None
    rate: RatePair | None = None
    ranking_order: str = "desc"  # "desc" | "asc"
    ranking_limit: int | None = None
    ranking_group: str | None = None  # "team" | "player"

    @property
    def player_name(self) -> str | None:
        player = self.entities.player
        return player.name if player else None

    @property
    def team_keys(self) -> list[str]:
        return [t.key for t in self.entities.teams if t.key]

    @property
    def season_labels(self) -> list[str]:
        return [s.label for s in self.entities.seasons]

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready copy for logs, diagnostics and the unanswered-question store."""
        data = asdict(self)
        data["type"] = self.type.value
        data["complexity"] = self.complexity.value
        return data

    def flag_clarification(self, reason: str) -> None:
        """Mark the analysis as unanswerable without more detail.

        The first reason wins so the user sees the earliest problem found.
        """
        self.requires_clarification = True
        if self.clarification_reason is None:
            self.clarification_reason = reason
        self.complexity = Complexity.COMPLEX
