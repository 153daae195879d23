"""Builds a parameterized Cypher query from a resolved analysis.

Graph schema:
    (Player)-[:PLAYED_IN]->(MatchDetail)<-[:HAS_MATCH_DETAILS]-(Fixture)

Every node carries a ``graphLabel`` property scoping it to this club's data.
Query text depends only on the *shape* of the analysis (type, metric keys,
which filters are present); all values travel as bound parameters.
"""

import logging

from statbot.application.services.reference_data import ReferenceData
from statbot.domain.entities import (
    Aggregation,
    GraphQuery,
    MetricDefinition,
    QuestionAnalysis,
    QuestionType,
    team_display,
)

logger = logging.getLogger(__name__)

DEFAULT_RANKING_LIMIT = 5
MAX_RANKING_LIMIT = 25

_MATCH_CLAUSE = (
    "MATCH (p:Player {graphLabel: $graphLabel})-[:PLAYED_IN]->"
    "(md:MatchDetail {graphLabel: $graphLabel})\n"
    "MATCH (f:Fixture {graphLabel: $graphLabel})-[:HAS_MATCH_DETAILS]->(md)"
)

_GROUP_EXPRESSIONS = {
    "team": "f.team",
    "player": "p.playerName",
    "season": "f.season",
}


class QuerySynthesizer:
    """Turns a canonical QuestionAnalysis into a GraphQuery."""

    def __init__(self, reference: ReferenceData, graph_label: str):
        self._reference = reference
        self._graph_label = graph_label

    def synthesize(self, analysis: QuestionAnalysis) -> GraphQuery:
        """Build the query for ``analysis``.

        Raises:
            ValueError: if the analysis needs clarification or has no metric.
        """
        if analysis.requires_clarification:
            raise ValueError("cannot synthesize a query for an analysis that needs clarification")
        if not analysis.metrics:
            raise ValueError("cannot synthesize a query without a metric")

        where, params = self._filters(analysis)
        if analysis.type is QuestionType.RANKING:
            returns = self._ranking_clause(analysis, params)
        elif analysis.type is QuestionType.RATE:
            numerator, denominator = self._rate_expressions(analysis)
            returns = f"RETURN {numerator} AS numerator, {denominator} AS denominator"
        elif analysis.type is QuestionType.COMPARISON:
            returns = "RETURN " + ", ".join(self._comparison_columns(analysis.metrics))
        else:
            metric = self._reference.metric(analysis.metrics[0])
            returns = self._single_value_clause(metric)

        parts = [_MATCH_CLAUSE]
        if where:
            parts.append("WHERE " + " AND ".join(where))
        parts.append(returns)
        query = GraphQuery(text="\n".join(parts), params=params)

        logger.debug("Synthesized %s query: %s | params=%s", analysis.type.value, query.text, query.params)
        return query

    # ── Filters ──────────────────────────────────────────────────────

    def _filters(self, analysis: QuestionAnalysis) -> tuple[list[str], dict]:
        where: list[str] = []
        params: dict = {"graphLabel": self._graph_label}

        if analysis.player_name:
            where.append("p.playerName = $playerName")
            params["playerName"] = analysis.player_name

        teams = [team_display(key) for key in analysis.team_keys]
        if len(teams) == 1:
            where.append("f.team = $teamName")
            params["teamName"] = teams[0]
        elif teams:
            where.append("f.team IN $teamNames")
            params["teamNames"] = teams

        seasons = analysis.season_labels
        if len(seasons) == 1:
            where.append("f.season = $season")
            params["season"] = seasons[0]
        elif seasons:
            where.append("f.season IN $seasons")
            params["seasons"] = seasons

        return where, params

    # ── Expressions ──────────────────────────────────────────────────

    def expression(self, metric: MetricDefinition) -> str:
        """Aggregate expression for a base (non-rate) metric."""
        if metric.aggregation is Aggregation.COUNT:
            return "count(md)"
        fields = " + ".join(f"coalesce(md.{field}, 0)" for field in metric.source_fields)
        if metric.aggregation is Aggregation.AVG:
            return f"avg({fields})"
        if metric.aggregation is Aggregation.SUM:
            return f"sum({fields})"
        raise ValueError(f"{metric.key} is a derived rate; use its numerator and denominator")

    def _rate_expressions(self, analysis: QuestionAnalysis) -> tuple[str, str]:
        if analysis.rate is not None:
            numerator, denominator = analysis.rate.numerator, analysis.rate.denominator
        else:
            metric = self._reference.metric(analysis.metrics[0])
            numerator, denominator = metric.numerator, metric.denominator
        return (
            self.expression(self._reference.metric(numerator)),
            self.expression(self._reference.metric(denominator)),
        )

    def _single_value_clause(self, metric: MetricDefinition) -> str:
        if metric.is_rate:
            numerator = self.expression(self._reference.metric(metric.numerator))
            denominator = self.expression(self._reference.metric(metric.denominator))
            return f"RETURN {numerator} AS numerator, {denominator} AS denominator"
        return f"RETURN {self.expression(metric)} AS value"

    def _comparison_columns(self, keys: list[str]) -> list[str]:
        columns: list[str] = []
        for index, key in enumerate(keys):
            metric = self._reference.metric(key)
            if metric.is_rate:
                numerator = self.expression(self._reference.metric(metric.numerator))
                denominator = self.expression(self._reference.metric(metric.denominator))
                columns.append(f"{numerator} AS m{index}_numerator")
                columns.append(f"{denominator} AS m{index}_denominator")
            else:
                columns.append(f"{self.expression(metric)} AS m{index}")
        return columns

    # ── Ranking ──────────────────────────────────────────────────────

    def _ranking_clause(self, analysis: QuestionAnalysis, params: dict) -> str:
        group = _GROUP_EXPRESSIONS[analysis.ranking_group or "player"]
        metric = self._reference.metric(analysis.metrics[0])

        if analysis.rate is not None or metric.is_rate:
            # Rates are divided and sorted after retrieval, so every group is returned.
            numerator, denominator = self._rate_expressions(analysis)
            return (
                f"WITH {group} AS label, {numerator} AS numerator, {denominator} AS denominator\n"
                "WHERE label IS NOT NULL AND denominator > 0\n"
                "RETURN label, numerator, denominator\n"
                "ORDER BY label ASC"
            )

        direction = "ASC" if analysis.ranking_order == "asc" else "DESC"
        limit = analysis.ranking_limit or DEFAULT_RANKING_LIMIT
        params["limit"] = max(1, min(limit, MAX_RANKING_LIMIT))
        return (
            f"WITH {group} AS label, {self.expression(metric)} AS value\n"
            "WHERE label IS NOT NULL\n"
            "RETURN label, value\n"
            f"ORDER BY value {direction}, label ASC\n"
            "LIMIT $limit"
        )
