"""Executes a graph query and phrases the result.

``answer`` is the only awaiting step of the pipeline: it runs the query
through the GraphStore under a bounded timeout and converts storage failures
into a user-safe fallback. ``compose`` is pure and turns rows into a
ChatbotResponse.
"""

import asyncio
import difflib
import logging
from typing import Any

from statbot.application.interfaces.graph_store import GraphStore
from statbot.application.services.number_formatting import (
    coerce_number,
    format_value,
    round_for_format,
)
from statbot.application.services.query_synthesizer import DEFAULT_RANKING_LIMIT
from statbot.application.services.reference_data import ReferenceData
from statbot.domain.entities import (
    ChatbotResponse,
    Complexity,
    FormatKind,
    GraphQuery,
    MetricDefinition,
    MetricFormat,
    QuestionAnalysis,
    QuestionType,
    VisualizationSpec,
    team_display,
)
from statbot.domain.exceptions import GraphStoreError

logger = logging.getLogger(__name__)

CONFIDENCE_BY_COMPLEXITY = {
    Complexity.SIMPLE: 0.8,
    Complexity.MODERATE: 0.6,
    Complexity.COMPLEX: 0.3,
}
ANSWERED_COMPLEX_CONFIDENCE = 0.7
FAILURE_CONFIDENCE = 0.1

FALLBACK_ANSWER = (
    "I'm sorry, I'm having trouble processing your question right now. "
    "Please try again in a moment."
)
SOURCE_LABEL = "Club statistics database"
DEFAULT_RATE_FORMAT = MetricFormat(FormatKind.DECIMAL, 1)

CLARIFICATION_ANSWERS = {
    "no_metric": (
        "I'm not sure which statistic you're asking about. Try asking about goals, "
        "assists, appearances, clean sheets or another stat."
    ),
    "unknown_metric": (
        "I don't recognise that statistic. Try asking about goals, assists, "
        "appearances, clean sheets or another stat."
    ),
    "unknown_team": (
        "I couldn't match that team. The club fields the 1st to 8th XI and the Vets. "
        "Which team did you mean?"
    ),
    "ambiguous_team": "Your question mentions more than one team. Which team did you mean?",
    "unknown_player": (
        "Who are you asking about? Select a player first or include their name in the question."
    ),
}
DEFAULT_CLARIFICATION = "I couldn't understand that question. Could you rephrase it?"

EXAMPLE_QUESTIONS = (
    "How many goals has Luke Bangs scored?",
    "How many goals has Luke Bangs scored for the 1s?",
    "How many appearances has Luke Bangs made?",
    "Which team has Luke Bangs scored the most goals for?",
    "How many fantasy points does Luke Bangs score per appearance?",
    "Who has kept the most clean sheets?",
    "How many goals have the 2nd XI scored in 2019/20?",
    "What is Luke Bangs' penalty conversion rate?",
)
MAX_SUGGESTIONS = 3


class AnswerSynthesizer:
    """Executes queries and renders natural-language answers."""

    def __init__(
        self,
        reference: ReferenceData,
        store: GraphStore,
        timeout_seconds: float = 10.0,
        debug: bool = False,
    ):
        self._reference = reference
        self._store = store
        self._timeout_seconds = timeout_seconds
        self._debug = debug

    async def answer(self, analysis: QuestionAnalysis, query: GraphQuery | None) -> ChatbotResponse:
        """Run ``query`` and phrase its result; never raises for storage failures."""
        if analysis.requires_clarification or query is None:
            return self.clarification(analysis)

        try:
            rows = await asyncio.wait_for(self._store.run(query), timeout=self._timeout_seconds)
        except asyncio.TimeoutError:
            logger.error("Graph query timed out after %.1fs", self._timeout_seconds)
            return self._fallback(analysis, query, "timeout")
        except GraphStoreError as exc:
            logger.exception("Graph query failed: %s", exc)
            return self._fallback(analysis, query, type(exc).__name__)

        response = self.compose(analysis, rows)
        if self._debug:
            response.cypher_query = query.text
            response.debug = {
                "analysis": analysis.snapshot(),
                "params": dict(query.params),
                "row_count": len(rows),
            }
        return response

    # ── Composition ──────────────────────────────────────────────────

    def compose(self, analysis: QuestionAnalysis, rows: list[dict[str, Any]]) -> ChatbotResponse:
        """Phrase ``rows`` for ``analysis``. Pure; missing fields count as zero."""
        metric = self._reference.metric(analysis.metrics[0])
        if analysis.type is QuestionType.RANKING:
            answer, value, visualization, answered = self._ranking(analysis, metric, rows)
        elif analysis.type is QuestionType.COMPARISON:
            answer, value, visualization, answered = self._comparison(analysis, rows)
        elif analysis.rate is not None or metric.is_rate:
            answer, value, visualization, answered = self._rate(analysis, metric, rows)
        else:
            answer, value, visualization, answered = self._single(analysis, metric, rows)

        confidence = CONFIDENCE_BY_COMPLEXITY[analysis.complexity]
        if analysis.complexity is Complexity.COMPLEX and answered and rows:
            confidence = ANSWERED_COMPLEX_CONFIDENCE

        return ChatbotResponse(
            answer=answer,
            confidence=confidence,
            sources=[SOURCE_LABEL],
            visualization=visualization,
            answer_value=value,
        )

    def clarification(self, analysis: QuestionAnalysis) -> ChatbotResponse:
        reason = analysis.clarification_reason or ""
        return ChatbotResponse(
            answer=CLARIFICATION_ANSWERS.get(reason, DEFAULT_CLARIFICATION),
            confidence=CONFIDENCE_BY_COMPLEXITY[analysis.complexity],
            suggestions=suggest_questions(analysis.question),
            debug={"analysis": analysis.snapshot()} if self._debug else None,
        )

    def _fallback(self, analysis: QuestionAnalysis, query: GraphQuery, error: str) -> ChatbotResponse:
        response = ChatbotResponse(answer=FALLBACK_ANSWER, confidence=FAILURE_CONFIDENCE)
        if self._debug:
            response.cypher_query = query.text
            response.debug = {"analysis": analysis.snapshot(), "error": error}
        return response

    # ── Single value ─────────────────────────────────────────────────

    def _single(self, analysis, metric, rows):
        value = coerce_number(rows[0].get("value")) if rows else 0
        subject = self._subject(analysis)
        suffix = self._suffix(analysis)
        shown = round_for_format(value, metric.format)

        if shown == 0 and metric.zero_phrase:
            answer = f"{subject} {metric.zero_phrase}{suffix}."
        elif metric.template:
            answer = metric.template.format(subject=subject, value=format_value(value, metric.format)) + f"{suffix}."
        else:
            answer = (
                f"{subject} has {metric.verb} {format_value(value, metric.format)} "
                f"{metric.unit(shown)}{suffix}."
            )
        return answer, shown, self._number_card(metric, value), True

    # ── Rates ────────────────────────────────────────────────────────

    def _rate_parts(self, analysis: QuestionAnalysis, metric: MetricDefinition):
        """(numerator def, denominator def, display def, format) for a rate question."""
        if analysis.rate is not None:
            numerator = self._reference.metric(analysis.rate.numerator)
            denominator = self._reference.metric(analysis.rate.denominator)
        else:
            numerator = self._reference.metric(metric.numerator)
            denominator = self._reference.metric(metric.denominator)
        display = metric if metric.is_rate else numerator
        fmt = metric.format if metric.is_rate else DEFAULT_RATE_FORMAT
        return numerator, denominator, display, fmt

    def _rate(self, analysis, metric, rows):
        numerator_def, denominator_def, display, fmt = self._rate_parts(analysis, metric)
        row = rows[0] if rows else {}
        numerator = coerce_number(row.get("numerator"))
        denominator = coerce_number(row.get("denominator"))
        subject = self._subject(analysis)
        suffix = self._suffix(analysis)

        if denominator == 0:
            phrase = denominator_def.zero_phrase or f"has no {denominator_def.plural} recorded"
            return f"{subject} {phrase}{suffix}.", 0, self._number_card(display, 0, fmt), True
        if numerator == 0 and numerator_def.zero_phrase:
            return f"{subject} {numerator_def.zero_phrase}{suffix}.", 0, self._number_card(display, 0, fmt), True

        value = numerator / denominator
        shown = round_for_format(value, fmt)
        formatted = format_value(value, fmt)
        if display.template:
            answer = display.template.format(subject=subject, value=formatted) + f"{suffix}."
        else:
            answer = (
                f"{subject} has averaged {formatted} {display.unit(shown)} "
                f"per {denominator_def.singular}{suffix}."
            )
        return answer, shown, self._number_card(display, value, fmt), True

    # ── Ranking ──────────────────────────────────────────────────────

    def _ranked_rows(self, analysis, rows, is_rate: bool) -> list[tuple[str, float]]:
        """(label, value) pairs in answer order; ties break on label ascending."""
        descending = analysis.ranking_order != "asc"
        limit = analysis.ranking_limit or DEFAULT_RANKING_LIMIT
        ranked: list[tuple[str, float]] = []
        for row in rows:
            if is_rate:
                denominator = coerce_number(row.get("denominator"))
                if not denominator:
                    continue
                value = coerce_number(row.get("numerator")) / denominator
            else:
                value = coerce_number(row.get("value"))
            ranked.append((str(row.get("label")), value))
        ranked.sort(key=lambda item: (-item[1] if descending else item[1], item[0]))
        return ranked[:limit]

    def _ranking(self, analysis, metric, rows):
        is_rate = analysis.rate is not None or metric.is_rate
        if is_rate:
            numerator_def, denominator_def, display, fmt = self._rate_parts(analysis, metric)
        else:
            numerator_def, denominator_def, display, fmt = metric, None, metric, metric.format
        ranked = self._ranked_rows(analysis, rows, is_rate)

        if not ranked:
            subject = self._subject(analysis)
            return (
                f"I couldn't find any {numerator_def.plural} to rank for {self._object(subject)}"
                f"{self._suffix(analysis)}.",
                None, None, False,
            )

        label, value = ranked[0]
        descending = analysis.ranking_order != "asc"
        if descending and round_for_format(value, fmt) == 0 and numerator_def.zero_phrase:
            answer = f"{self._subject(analysis)} {numerator_def.zero_phrase}{self._suffix(analysis)}."
        else:
            if display.template:
                achievement = f"has the {'highest' if descending else 'lowest'} {display.label.lower()}"
            elif is_rate:
                achievement = (
                    f"has averaged the {'most' if descending else 'fewest'} {display.plural} "
                    f"per {denominator_def.singular}"
                )
            else:
                achievement = f"has {display.verb} the {'most' if descending else 'fewest'} {display.plural}"
            answer = self._ranking_sentence(analysis, achievement, label, format_value(value, fmt))

        if analysis.ranking_limit and analysis.ranking_limit > 1 and len(ranked) > 1:
            listing = ", ".join(f"{lbl} ({format_value(val, fmt)})" for lbl, val in ranked)
            answer = f"{answer} Top {len(ranked)}: {listing}."

        top = max(val for _, val in ranked)
        visualization = VisualizationSpec(
            type="bar",
            data=[
                {"label": lbl, "value": round_for_format(val, fmt), "is_max": val == top}
                for lbl, val in ranked
            ],
            config={"metric": display.key, "label": display.label},
        )
        return answer, round_for_format(value, fmt), visualization, True

    def _ranking_sentence(self, analysis, achievement: str, label: str, formatted: str) -> str:
        group = analysis.ranking_group or "player"
        player = analysis.player_name
        if group == "team":
            if player:
                return f"{player} {achievement} for the {label}{self._season_suffix(analysis)} ({formatted})."
            return f"The {label} {achievement}{self._season_suffix(analysis)} ({formatted})."
        if group == "season":
            return f"{self._subject(analysis)} {achievement}{self._team_suffix(analysis)} in {label} ({formatted})."
        return f"{label} {achievement}{self._suffix(analysis)} ({formatted})."

    # ── Comparison ───────────────────────────────────────────────────

    def _comparison(self, analysis, rows):
        row = rows[0] if rows else {}
        clauses: list[str] = []
        data: list[dict[str, Any]] = []
        for index, key in enumerate(analysis.metrics):
            metric = self._reference.metric(key)
            if metric.is_rate:
                denominator = coerce_number(row.get(f"m{index}_denominator"))
                value = coerce_number(row.get(f"m{index}_numerator")) / denominator if denominator else 0
            else:
                value = coerce_number(row.get(f"m{index}"))
            shown = round_for_format(value, metric.format)
            if shown == 0 and metric.zero_phrase:
                clauses.append(metric.zero_phrase)
            elif metric.is_rate:
                clauses.append(f"has a {metric.label.lower()} of {format_value(value, metric.format)}")
            else:
                clauses.append(f"has {metric.verb} {format_value(value, metric.format)} {metric.unit(shown)}")
            data.append({"label": metric.label, "key": metric.key, "value": shown})

        top = max(item["value"] for item in data)
        for item in data:
            item["is_max"] = item["value"] == top

        joined = clauses[0] if len(clauses) == 1 else ", ".join(clauses[:-1]) + f" and {clauses[-1]}"
        answer = f"{self._subject(analysis)} {joined}{self._suffix(analysis)}."
        visualization = VisualizationSpec(
            type="bar", data=data, config={"metrics": list(analysis.metrics)},
        )
        return answer, None, visualization, True

    # ── Phrasing helpers ─────────────────────────────────────────────

    @staticmethod
    def _subject(analysis: QuestionAnalysis) -> str:
        if analysis.player_name:
            return analysis.player_name
        teams = analysis.team_keys
        if len(teams) == 1:
            return f"The {team_display(teams[0])}"
        return "The club"

    @staticmethod
    def _object(subject: str) -> str:
        return subject[0].lower() + subject[1:] if subject.startswith("The ") else subject

    @staticmethod
    def _team_suffix(analysis: QuestionAnalysis) -> str:
        teams = analysis.team_keys
        if not analysis.player_name or not teams:
            return ""
        names = [f"the {team_display(key)}" for key in teams]
        if len(names) == 1:
            return f" for {names[0]}"
        return " for " + ", ".join(names[:-1]) + f" and {names[-1]}"

    @staticmethod
    def _season_suffix(analysis: QuestionAnalysis) -> str:
        seasons = analysis.season_labels
        if not seasons:
            return ""
        return " in " + " and ".join(seasons)

    def _suffix(self, analysis: QuestionAnalysis) -> str:
        return self._team_suffix(analysis) + self._season_suffix(analysis)

    @staticmethod
    def _number_card(metric: MetricDefinition, value: float, fmt: MetricFormat | None = None) -> VisualizationSpec:
        fmt = fmt or metric.format
        return VisualizationSpec(
            type="number",
            data=[{
                "key": metric.key,
                "label": metric.label,
                "value": round_for_format(value, fmt),
                "display": format_value(value, fmt),
            }],
        )


def suggest_questions(question: str, limit: int = MAX_SUGGESTIONS) -> list[str]:
    """Example questions most similar to ``question``."""
    lowered = question.lower()
    scored = [
        (difflib.SequenceMatcher(None, lowered, example.lower()).ratio(), index, example)
        for index, example in enumerate(EXAMPLE_QUESTIONS)
    ]
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [example for _, _, example in scored[:limit]]
