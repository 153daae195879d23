"""Turns a free-text question into a draft QuestionAnalysis.

Pure and synchronous. Entities and metrics come out as raw surface strings;
the MetricTeamResolver canonicalizes them afterwards.
"""

import difflib
import logging
import re
from dataclasses import dataclass

from statbot.application.services.reference_data import ReferenceData
from statbot.domain.entities import (
    TEAM_PATTERN,
    Complexity,
    PlayerRef,
    QuestionAnalysis,
    QuestionContext,
    QuestionEntities,
    QuestionType,
    RatePair,
    SeasonRef,
    TeamRef,
    normalize_team,
)

logger = logging.getLogger(__name__)

SPELLING_CUTOFF = 0.85
NAME_MATCH_CUTOFF = 0.85

_FIRST_PERSON = re.compile(r"\b(?:i|i've|i'm|i'd|me|my|myself|mine)\b")
_SEASON = re.compile(r"\b(20\d{2})\s*[/-]\s*(20\d{2}|\d{2})\b")
_CAPITALISED_RUN = re.compile(r"[A-Z][A-Za-z'\-]+(?:\s+[A-Z][A-Za-z'\-]+)+")
_SPELLING_TOKEN = re.compile(r"\b[a-z]{4,}\b")

_RANKING_DESC = re.compile(r"\b(?:most|highest|top|best|greatest|leading)\b")
_RANKING_ASC = re.compile(r"\b(?:least|fewest|lowest|worst)\b")
# Threshold phrasing, not a ranking cue
_THRESHOLD = re.compile(r"\bat\s+(?:least|most)\b")
_TOP_N = re.compile(r"\btop\s+(\d{1,2}|one|two|three|four|five|six|seven|eight|nine|ten)\b")
_GROUP_BY_TEAM = re.compile(r"\b(?:which|what)\s+(?:team|xi|side)\b")
_GROUP_BY_SEASON = re.compile(r"\b(?:which|what)\s+season\b|\bbest\s+season\b")
_GROUP_BY_PLAYER = re.compile(r"\b(?:who|which\s+player|what\s+player)\b")
_SCORING_WORDS = re.compile(r"\b(?:goal\s*scorers?|scorers?|scored|scores?|scoring)\b")

_NUMBER_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}

# (pattern, denominator metric) pairs, matched against the lowered question
_RATE_CUES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bper\s+(?:appearance|app|game|match)\b"), "APP"),
    (re.compile(r"\bper\s+goal\b"), "G"),
    (re.compile(r"\bper\s+clean\s+sheet\b"), "CLS"),
    (re.compile(r"\b(?:on\s+average|average|avg)\b"), "APP"),
)

# Capitalised words that never start or end a player name
_NAME_STOP_WORDS = frozenset({
    "how", "what", "what's", "whats", "which", "who", "who's", "whose", "when",
    "where", "why", "does", "did", "do", "has", "have", "had", "is", "are",
    "was", "were", "can", "could", "will", "would", "show", "tell", "give",
    "list", "compare", "in", "for", "the", "and", "of", "vets", "xi", "i",
    "club", "season", "team", "fantasy", "man", "match", "mom",
})

# General words that must never be "corrected" towards a metric alias
_KNOWN_WORDS = frozenset({
    "which", "where", "their", "there", "these", "those", "about", "after",
    "before", "against", "average", "career", "total", "number", "season",
    "seasons", "score", "scored", "scorer", "player", "players", "played",
    "playing", "would", "could", "should", "since", "first", "second", "third",
    "fourth", "fifth", "sixth", "seventh", "eighth", "firsts", "seconds",
    "thirds", "fourths", "fifths", "sixths", "sevenths", "eighths", "highest",
    "lowest", "least", "fewest", "greatest", "leading", "every", "scoring",
    "weather", "today", "tomorrow", "other", "whole", "veterans", "appearance",
    "minute", "clean", "sheet", "match", "penalty", "fantasy",
})


@dataclass
class _AliasHit:
    start: int
    end: int
    alias: str
    key: str
    scoped: bool = False


def normalize_question(question: str) -> str:
    """Fold typographic quotes, collapse whitespace, drop trailing punctuation."""
    text = question.replace("’", "'").replace("‘", "'")
    text = text.replace("“", '"').replace("”", '"')
    text = " ".join(text.split())
    return text.rstrip("?!. ").strip()


class QuestionAnalyzer:
    """Classifies a question and extracts player, team, season and metric mentions."""

    def __init__(self, reference: ReferenceData):
        self._reference = reference
        self._alias_patterns = [
            (alias, key, re.compile(rf"(?<![\w']){re.escape(alias)}(?![\w'])"))
            for alias, key in reference.alias_scan
        ]
        self._single_word_aliases = reference.single_word_aliases()
        vocabulary = set(_KNOWN_WORDS)
        for alias, _ in reference.alias_scan:
            vocabulary.update(alias.split())
        for name in reference.roster:
            vocabulary.update(name.lower().split())
        self._vocabulary = frozenset(vocabulary)
        self._roster_patterns = [
            (name, re.compile(rf"(?<![\w']){re.escape(name.lower())}(?!\w)"))
            for name in sorted(reference.roster, key=len, reverse=True)
        ]

    def analyze(self, context: QuestionContext) -> QuestionAnalysis:
        """Produce a draft analysis. Never raises."""
        try:
            return self._analyze(context)
        except Exception:
            logger.exception("Question analysis failed for %r", self._clip(context.question))
            analysis = QuestionAnalysis(
                question=context.question,
                type=QuestionType.CLUB_AGGREGATE,
            )
            analysis.flag_clarification("analysis_error")
            return analysis

    def _analyze(self, context: QuestionContext) -> QuestionAnalysis:
        text = self._correct_spelling(normalize_question(context.question))
        lowered = text.lower()
        if len(lowered) != len(text):
            text = lowered
        masked = list(lowered)

        player = self._detect_player(text, lowered, masked)
        seasons = self._detect_seasons(masked)
        teams, scoped_hits = self._detect_teams(masked)
        ranking_order = self._detect_ranking(lowered)
        hits = self._scan_aliases(masked) + scoped_hits
        hits.sort(key=lambda h: h.start)

        rate = None
        derived = [h for h in hits if self._reference.metric(h.key).is_rate]
        if not derived:
            cue = self._detect_rate_cue(lowered, hits)
            if cue is not None:
                denominator, hits = cue
                if hits:
                    rate = RatePair(numerator=hits[0].alias, denominator=denominator)
                    hits = hits[:1]

        metrics = self._unique_surfaces(hits)
        if ranking_order and not metrics:
            metrics = ["G" if _SCORING_WORDS.search(lowered) else "APP"]

        analysis = QuestionAnalysis(
            question=text,
            type=QuestionType.CLUB_AGGREGATE,
            entities=QuestionEntities(player=player, teams=teams, seasons=seasons),
            metrics=metrics,
            rate=rate,
        )

        if ranking_order:
            analysis.type = QuestionType.RANKING
            analysis.ranking_order = ranking_order
            analysis.ranking_limit = self._detect_limit(lowered)
            analysis.ranking_group = self._detect_ranking_group(lowered, player)
        elif rate is not None or derived:
            analysis.type = QuestionType.RATE
        elif len(metrics) >= 2:
            analysis.type = QuestionType.COMPARISON
        elif player is not None:
            analysis.type = QuestionType.TEAM_STAT if teams else QuestionType.SINGLE_STAT

        analysis.complexity = self._assign_complexity(analysis)

        if not metrics:
            analysis.flag_clarification("no_metric")
        distinct_teams = {normalize_team(t.surface) for t in teams} - {None}
        if len(distinct_teams) > 1 and analysis.type is not QuestionType.RANKING:
            analysis.flag_clarification("ambiguous_team")

        logger.debug(
            "Analyzed %r → type=%s metrics=%s teams=%s complexity=%s clarify=%s",
            self._clip(text), analysis.type.value, analysis.metrics,
            [t.surface for t in teams], analysis.complexity.value,
            analysis.requires_clarification,
        )
        return analysis

    # ── Normalisation ────────────────────────────────────────────────

    def _correct_spelling(self, text: str) -> str:
        """Snap misspelt lowercase words onto single-word metric aliases."""
        if not self._single_word_aliases:
            return text

        def _fix(match: re.Match[str]) -> str:
            word = match.group(0)
            if word in self._vocabulary:
                return word
            close = difflib.get_close_matches(
                word, self._single_word_aliases, n=1, cutoff=SPELLING_CUTOFF,
            )
            if close:
                logger.debug("Spelling: %r → %r", word, close[0])
                return close[0]
            return word

        return _SPELLING_TOKEN.sub(_fix, text)

    # ── Entities ─────────────────────────────────────────────────────

    def _detect_player(self, text: str, lowered: str, masked: list[str]) -> PlayerRef | None:
        for name, pattern in self._roster_patterns:
            match = pattern.search(lowered)
            if match:
                self._mask(masked, match.start(), match.end())
                return PlayerRef(surface=text[match.start():match.end()], name=name)

        for run in _CAPITALISED_RUN.finditer(text):
            span = self._trim_name_run(text, run.start(), run.end())
            if span is None:
                continue
            start, end = span
            surface = text[start:end]
            self._mask(masked, start, end)
            close = difflib.get_close_matches(
                surface, self._reference.roster, n=1, cutoff=NAME_MATCH_CUTOFF,
            )
            return PlayerRef(surface=surface, name=close[0] if close else None)

        match = _FIRST_PERSON.search(lowered)
        if match:
            return PlayerRef(surface=text[match.start():match.end()], first_person=True)
        return None

    @staticmethod
    def _trim_name_run(text: str, start: int, end: int) -> tuple[int, int] | None:
        """Strip question and stop words from the edges of a capitalised run."""
        words = [(m.start() + start, m.end() + start) for m in re.finditer(r"\S+", text[start:end])]
        while words and text[words[0][0]:words[0][1]].lower() in _NAME_STOP_WORDS:
            words.pop(0)
        while words and text[words[-1][0]:words[-1][1]].lower() in _NAME_STOP_WORDS:
            words.pop()
        if len(words) < 2:
            return None
        return words[0][0], words[-1][1]

    def _detect_seasons(self, masked: list[str]) -> list[SeasonRef]:
        seasons: list[SeasonRef] = []
        for match in _SEASON.finditer("".join(masked)):
            start_year, end = match.group(1), match.group(2)
            label = f"{start_year}/{end[-2:]}"
            if label not in [s.label for s in seasons]:
                seasons.append(SeasonRef(surface=match.group(0), label=label))
            self._mask(masked, match.start(), match.end())
        return seasons

    def _detect_teams(self, masked: list[str]) -> tuple[list[TeamRef], list[_AliasHit]]:
        """Find team mentions; a mention directly followed by a metric alias
        becomes one team-scoped metric surface ("2nd team goals")."""
        teams: list[TeamRef] = []
        scoped: list[_AliasHit] = []
        current = "".join(masked)
        for match in TEAM_PATTERN.finditer(current):
            surface = match.group(0)
            rest = current[match.end():]
            scoped_alias = None
            for alias, key, _ in self._alias_patterns:
                if rest.startswith(" " + alias) and not rest[len(alias) + 1:len(alias) + 2].isalnum():
                    scoped_alias = (alias, key)
                    break
            if scoped_alias is not None:
                alias, key = scoped_alias
                end = match.end() + 1 + len(alias)
                scoped.append(_AliasHit(match.start(), end, f"{surface} {alias}", key, scoped=True))
                self._mask(masked, match.start(), end)
            else:
                teams.append(TeamRef(surface=surface))
                self._mask(masked, match.start(), match.end())
        return teams, scoped

    # ── Metrics ──────────────────────────────────────────────────────

    def _scan_aliases(self, masked: list[str]) -> list[_AliasHit]:
        """Maximal-length-first, non-overlapping alias matches."""
        text = "".join(masked)
        taken: list[tuple[int, int]] = []
        hits: list[_AliasHit] = []
        for alias, key, pattern in self._alias_patterns:
            for match in pattern.finditer(text):
                start, end = match.span()
                if any(start < t_end and end > t_start for t_start, t_end in taken):
                    continue
                taken.append((start, end))
                hits.append(_AliasHit(start, end, alias, key))
        return hits

    @staticmethod
    def _detect_rate_cue(
        lowered: str, hits: list[_AliasHit]
    ) -> tuple[str, list[_AliasHit]] | None:
        """Find a rate cue; alias hits inside the cue are dropped from the metrics."""
        for pattern, denominator in _RATE_CUES:
            match = pattern.search(lowered)
            if not match:
                continue
            start, end = match.span()
            remaining = [
                h for h in hits
                if not (h.start < end and h.end > start) and h.key != denominator
            ]
            return denominator, remaining
        return None

    @staticmethod
    def _unique_surfaces(hits: list[_AliasHit]) -> list[str]:
        """One surface per metric; team-scoped surfaces are kept per team."""
        surfaces: list[str] = []
        seen: set[str] = set()
        for hit in hits:
            dedupe_key = hit.alias if hit.scoped else hit.key
            if dedupe_key in seen:
                continue
            seen.add(dedupe_key)
            surfaces.append(hit.alias)
        return surfaces

    # ── Ranking ──────────────────────────────────────────────────────

    @staticmethod
    def _detect_ranking(lowered: str) -> str | None:
        lowered = _THRESHOLD.sub(" ", lowered)
        if _RANKING_ASC.search(lowered):
            return "asc"
        if _RANKING_DESC.search(lowered):
            return "desc"
        return None

    @staticmethod
    def _detect_limit(lowered: str) -> int | None:
        match = _TOP_N.search(lowered)
        if not match:
            return None
        raw = match.group(1)
        return int(raw) if raw.isdigit() else _NUMBER_WORDS[raw]

    @staticmethod
    def _detect_ranking_group(lowered: str, player: PlayerRef | None) -> str:
        if _GROUP_BY_TEAM.search(lowered):
            return "team"
        if _GROUP_BY_SEASON.search(lowered):
            return "season"
        if _GROUP_BY_PLAYER.search(lowered) or player is None:
            return "player"
        return "team"

    # ── Classification ───────────────────────────────────────────────

    @staticmethod
    def _assign_complexity(analysis: QuestionAnalysis) -> Complexity:
        if analysis.type in (QuestionType.RANKING, QuestionType.COMPARISON):
            return Complexity.COMPLEX
        if not analysis.metrics:
            return Complexity.COMPLEX
        filters = len(analysis.entities.teams) + len(analysis.entities.seasons)
        if analysis.type is QuestionType.RATE or filters >= 2:
            return Complexity.MODERATE
        return Complexity.SIMPLE

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _mask(chars: list[str], start: int, end: int) -> None:
        for i in range(start, min(end, len(chars))):
            chars[i] = " "

    @staticmethod
    def _clip(text: str, limit: int = 120) -> str:
        if len(text) <= limit:
            return text
        return f"{text[:limit]}…"
