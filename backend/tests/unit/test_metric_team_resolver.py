"""Unit tests for the MetricTeamResolver - canonical keys and player binding."""

import copy

import pytest

from statbot.application.services.metric_team_resolver import MetricTeamResolver
from statbot.application.services.question_analyzer import QuestionAnalyzer
from statbot.domain.entities import (
    PlayerRef,
    QuestionAnalysis,
    QuestionContext,
    QuestionEntities,
    QuestionType,
    RatePair,
    TeamRef,
)


@pytest.fixture
def analyzer(reference) -> QuestionAnalyzer:
    return QuestionAnalyzer(reference)


@pytest.fixture
def resolver(reference) -> MetricTeamResolver:
    return MetricTeamResolver(reference)


def _resolve(analyzer, resolver, question: str, user_context: str | None = None) -> QuestionAnalysis:
    analysis = analyzer.analyze(QuestionContext(question=question, user_context=user_context))
    return resolver.resolve(analysis, user_context)


class TestMetrics:

    def test_alias_becomes_canonical_key(self, analyzer, resolver):
        analysis = _resolve(analyzer, resolver, "How many goals has Luke Bangs scored for the 1s?")

        assert analysis.metrics == ["G"]
        assert analysis.team_keys == ["1s"]
        assert analysis.type is QuestionType.TEAM_STAT

    def test_team_scoped_surface_adds_team_filter(self, analyzer, resolver):
        analysis = _resolve(analyzer, resolver, "How many 2nd team goals has Luke Bangs scored?")

        assert analysis.metrics == ["G"]
        assert analysis.team_keys == ["2s"]
        assert analysis.type is QuestionType.TEAM_STAT

    def test_rate_pair_resolves_to_derived_metric(self, analyzer, resolver):
        analysis = _resolve(
            analyzer, resolver, "How many fantasy points does Luke Bangs score per appearance?"
        )

        assert analysis.metrics == ["FTPperAPP"]
        assert analysis.rate == RatePair(numerator="FTP", denominator="APP")
        assert analysis.type is QuestionType.RATE

    def test_derived_alias_fills_in_rate_pair(self, analyzer, resolver):
        analysis = _resolve(analyzer, resolver, "How many goals per game does Luke Bangs get?")

        assert analysis.metrics == ["GperAPP"]
        assert analysis.rate == RatePair(numerator="G", denominator="APP")

    def test_ad_hoc_rate_without_derived_metric_keeps_numerator(self, reference, resolver):
        analysis = QuestionAnalysis(
            question="saves per goal",
            type=QuestionType.RATE,
            metrics=["saves"],
            rate=RatePair(numerator="saves", denominator="G"),
        )

        resolver.resolve(analysis)

        assert analysis.metrics == ["SAVES"]
        assert analysis.rate == RatePair(numerator="SAVES", denominator="G")

    def test_unknown_surface_requests_clarification(self, resolver):
        analysis = QuestionAnalysis(question="q", type=QuestionType.SINGLE_STAT, metrics=["nutmegs"])

        resolver.resolve(analysis)

        assert analysis.requires_clarification
        assert analysis.clarification_reason == "unknown_metric"

    def test_resolving_twice_is_stable(self, analyzer, resolver):
        analysis = _resolve(analyzer, resolver, "How many goals has Luke Bangs scored for the 1s in 2019/20?")
        before = copy.deepcopy(analysis)

        resolver.resolve(analysis)

        assert analysis == before


class TestTeams:

    def test_nonexistent_team_is_dropped_and_flagged(self, analyzer, resolver):
        analysis = _resolve(analyzer, resolver, "How many goals has Luke Bangs scored for the 9s?")

        assert analysis.team_keys == []
        assert analysis.requires_clarification
        assert analysis.clarification_reason == "unknown_team"

    def test_club_sentinel_is_not_a_filter(self, resolver):
        analysis = QuestionAnalysis(
            question="q",
            type=QuestionType.CLUB_AGGREGATE,
            metrics=["G"],
            entities=QuestionEntities(teams=[TeamRef(surface="the club")]),
        )

        resolver.resolve(analysis)

        assert analysis.team_keys == []
        assert not analysis.requires_clarification

    def test_duplicate_teams_collapse(self, resolver):
        analysis = QuestionAnalysis(
            question="q",
            type=QuestionType.CLUB_AGGREGATE,
            metrics=["G"],
            entities=QuestionEntities(teams=[TeamRef(surface="1s"), TeamRef(surface="first team")]),
        )

        resolver.resolve(analysis)

        assert analysis.team_keys == ["1s"]


class TestPlayer:

    def test_first_person_uses_context(self, analyzer, resolver):
        analysis = _resolve(analyzer, resolver, "How many goals have I scored?", user_context="luke bangs")

        assert analysis.player_name == "Luke Bangs"
        assert not analysis.requires_clarification

    def test_first_person_without_context_needs_clarification(self, analyzer, resolver):
        analysis = _resolve(analyzer, resolver, "How many goals have I scored?")

        assert analysis.player_name is None
        assert analysis.clarification_reason == "unknown_player"

    def test_explicit_name_wins_over_context(self, analyzer, resolver):
        analysis = _resolve(
            analyzer, resolver, "How many goals has Oscar Turner scored?", user_context="Luke Bangs"
        )

        assert analysis.player_name == "Oscar Turner"

    def test_unknown_name_keeps_surface(self, resolver):
        analysis = QuestionAnalysis(
            question="q",
            type=QuestionType.SINGLE_STAT,
            metrics=["G"],
            entities=QuestionEntities(player=PlayerRef(surface="Jamie  Smith")),
        )

        resolver.resolve(analysis)

        assert analysis.player_name == "Jamie Smith"
