"""Metric & team resolver: canonicalizes the analyzer's raw surface strings.

Enriches the analysis in place: metric surfaces become canonical metric keys,
team surfaces gain canonical team keys, and first-person pronouns are bound
to the player named by the request context. Re-running on an already
canonical analysis leaves it unchanged.
"""

import logging

from statbot.application.services.reference_data import ReferenceData
from statbot.domain.entities import (
    CLUB_TEAM_KEY,
    TEAM_PATTERN,
    QuestionAnalysis,
    QuestionType,
    RatePair,
    TeamRef,
    normalize_team,
)

logger = logging.getLogger(__name__)


class MetricTeamResolver:
    """Maps aliases to metric keys and team surface forms to team keys."""

    def __init__(self, reference: ReferenceData):
        self._reference = reference
        self._roster_folded = {name.lower(): name for name in reference.roster}

    def resolve(self, analysis: QuestionAnalysis, user_context: str | None = None) -> QuestionAnalysis:
        self._resolve_metrics(analysis)
        self._resolve_rate(analysis)
        self._resolve_teams(analysis)
        self._resolve_player(analysis, user_context)
        self._refresh_type(analysis)

        logger.debug(
            "Resolved → type=%s metrics=%s player=%s teams=%s seasons=%s clarify=%s",
            analysis.type.value, analysis.metrics, analysis.player_name,
            analysis.team_keys, analysis.season_labels, analysis.requires_clarification,
        )
        return analysis

    # ── Metrics ──────────────────────────────────────────────────────

    def _resolve_metric_surface(self, analysis: QuestionAnalysis, surface: str) -> str | None:
        """Resolve one surface; a team-scoped variant yields its base key plus a team filter."""
        key = self._reference.resolve_metric(surface)
        if key is not None:
            return key

        match = TEAM_PATTERN.match(surface)
        if match is None:
            return None
        base = self._reference.resolve_metric(surface[match.end():].strip())
        if base is None:
            return None
        team_surface = match.group(0)
        known = {normalize_team(t.key or t.surface) for t in analysis.entities.teams}
        if normalize_team(team_surface) not in known:
            analysis.entities.teams.append(TeamRef(surface=team_surface))
        return base

    def _resolve_metrics(self, analysis: QuestionAnalysis) -> None:
        keys: list[str] = []
        unresolved: list[str] = []
        for surface in analysis.metrics:
            key = self._resolve_metric_surface(analysis, surface)
            if key is None:
                unresolved.append(surface)
            elif key not in keys:
                keys.append(key)

        if unresolved:
            logger.info("Unresolved metric surfaces: %s", unresolved)
        analysis.metrics = keys
        if unresolved and not keys:
            analysis.flag_clarification("unknown_metric")

    def _resolve_rate(self, analysis: QuestionAnalysis) -> None:
        if analysis.rate is not None:
            numerator = self._resolve_metric_surface(analysis, analysis.rate.numerator)
            denominator = self._resolve_metric_surface(analysis, analysis.rate.denominator)
            if numerator is None or denominator is None:
                analysis.rate = None
                analysis.flag_clarification("unknown_metric")
                return
            analysis.rate = RatePair(numerator=numerator, denominator=denominator)
            derived = self._reference.derived_rate_for(numerator, denominator)
            analysis.metrics = [derived or numerator]
            return

        for key in analysis.metrics:
            definition = self._reference.metric(key)
            if definition.is_rate and analysis.type in (QuestionType.RATE, QuestionType.RANKING):
                analysis.rate = RatePair(
                    numerator=definition.numerator, denominator=definition.denominator,
                )
                analysis.metrics = [key]
                return

    # ── Teams ────────────────────────────────────────────────────────

    def _resolve_teams(self, analysis: QuestionAnalysis) -> None:
        resolved: list[TeamRef] = []
        for team in analysis.entities.teams:
            key = team.key or normalize_team(team.surface)
            if key is None:
                logger.info("Unrecognised team %r; dropping team filter", team.surface)
                analysis.flag_clarification("unknown_team")
                continue
            if key == CLUB_TEAM_KEY:
                continue
            if any(r.key == key for r in resolved):
                continue
            resolved.append(TeamRef(surface=team.surface, key=key))
        analysis.entities.teams = resolved

    # ── Player ───────────────────────────────────────────────────────

    def _canonical_player(self, name: str) -> str:
        cleaned = " ".join(name.split())
        return self._roster_folded.get(cleaned.lower(), cleaned)

    def _resolve_player(self, analysis: QuestionAnalysis, user_context: str | None) -> None:
        player = analysis.entities.player
        if player is None or player.name:
            return
        if not player.first_person:
            player.name = self._canonical_player(player.surface)
            return

        context = (user_context or "").strip()
        if context:
            player.name = self._canonical_player(context)
        else:
            analysis.flag_clarification("unknown_player")

    # ── Type ─────────────────────────────────────────────────────────

    @staticmethod
    def _refresh_type(analysis: QuestionAnalysis) -> None:
        """Re-derive the type where resolution changed its inputs."""
        if analysis.type is QuestionType.COMPARISON and len(analysis.metrics) < 2:
            analysis.type = QuestionType.SINGLE_STAT if analysis.entities.player else QuestionType.CLUB_AGGREGATE
        if analysis.type in (QuestionType.SINGLE_STAT, QuestionType.TEAM_STAT):
            analysis.type = QuestionType.TEAM_STAT if analysis.team_keys else QuestionType.SINGLE_STAT
        if analysis.type is QuestionType.RATE and analysis.rate is None and not analysis.requires_clarification:
            analysis.type = QuestionType.SINGLE_STAT if analysis.entities.player else QuestionType.CLUB_AGGREGATE
        if not analysis.metrics and not analysis.requires_clarification:
            analysis.flag_clarification("no_metric")
