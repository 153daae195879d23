"""Unit tests for the QuerySynthesizer - parameterized Cypher generation."""

import pytest

from statbot.application.services.query_synthesizer import (
    DEFAULT_RANKING_LIMIT,
    MAX_RANKING_LIMIT,
    QuerySynthesizer,
)
from statbot.domain.entities import (
    PlayerRef,
    QuestionAnalysis,
    QuestionEntities,
    QuestionType,
    RatePair,
    SeasonRef,
    TeamRef,
    team_display,
)

GRAPH_LABEL = "testClub"


@pytest.fixture
def synthesizer(reference) -> QuerySynthesizer:
    return QuerySynthesizer(reference, GRAPH_LABEL)


def _analysis(
    type: QuestionType,
    metrics: list[str],
    player: str | None = None,
    teams: list[str] | None = None,
    seasons: list[str] | None = None,
    **kwargs,
) -> QuestionAnalysis:
    return QuestionAnalysis(
        question="test",
        type=type,
        metrics=metrics,
        entities=QuestionEntities(
            player=PlayerRef(surface=player, name=player) if player else None,
            teams=[TeamRef(surface=key, key=key) for key in teams or []],
            seasons=[SeasonRef(surface=label, label=label) for label in seasons or []],
        ),
        **kwargs,
    )


class TestSingleValue:

    def test_player_team_season_filters_are_parameters(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(QuestionType.TEAM_STAT, ["G"], player="Luke Bangs", teams=["1s"], seasons=["2019/20"])
        )

        assert "p.playerName = $playerName" in query.text
        assert "f.team = $teamName" in query.text
        assert "f.season = $season" in query.text
        assert "Luke Bangs" not in query.text
        assert query.params == {
            "graphLabel": GRAPH_LABEL,
            "playerName": "Luke Bangs",
            "teamName": "1st XI",
            "season": "2019/20",
        }

    def test_sum_expression_coalesces_every_source_field(self, synthesizer):
        query = synthesizer.synthesize(_analysis(QuestionType.SINGLE_STAT, ["G"], player="Luke Bangs"))

        assert query.text.endswith(
            "RETURN sum(coalesce(md.goals, 0) + coalesce(md.penaltiesScored, 0)) AS value"
        )

    def test_appearances_count_match_details(self, synthesizer):
        query = synthesizer.synthesize(_analysis(QuestionType.SINGLE_STAT, ["APP"], player="Luke Bangs"))

        assert "RETURN count(md) AS value" in query.text

    def test_club_aggregate_has_no_where_clause(self, synthesizer):
        query = synthesizer.synthesize(_analysis(QuestionType.CLUB_AGGREGATE, ["G"]))

        assert "WHERE" not in query.text
        assert query.params == {"graphLabel": GRAPH_LABEL}

    def test_every_node_is_scoped_by_graph_label(self, synthesizer):
        query = synthesizer.synthesize(_analysis(QuestionType.CLUB_AGGREGATE, ["G"]))

        assert query.text.count("graphLabel: $graphLabel") == 3

    def test_multiple_teams_use_in_list(self, synthesizer):
        query = synthesizer.synthesize(_analysis(QuestionType.TEAM_STAT, ["G"], teams=["1s", "Vets"]))

        assert "f.team IN $teamNames" in query.text
        assert query.params["teamNames"] == ["1st XI", "Vets"]

    def test_same_shape_gives_same_text(self, synthesizer):
        first = synthesizer.synthesize(_analysis(QuestionType.SINGLE_STAT, ["A"], player="Luke Bangs"))
        second = synthesizer.synthesize(_analysis(QuestionType.SINGLE_STAT, ["A"], player="Oscar Turner"))

        assert first.text == second.text
        assert first.params != second.params


class TestRatesAndComparisons:

    def test_rate_returns_numerator_and_denominator(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(
                QuestionType.RATE, ["FTPperAPP"], player="Luke Bangs",
                rate=RatePair(numerator="FTP", denominator="APP"),
            )
        )

        assert "sum(coalesce(md.fantasyPoints, 0)) AS numerator" in query.text
        assert "count(md) AS denominator" in query.text

    def test_derived_metric_without_rate_pair(self, synthesizer):
        query = synthesizer.synthesize(_analysis(QuestionType.SINGLE_STAT, ["PCR"], player="Luke Bangs"))

        assert "sum(coalesce(md.penaltiesScored, 0)) AS numerator" in query.text
        assert (
            "sum(coalesce(md.penaltiesScored, 0) + coalesce(md.penaltiesMissed, 0)) AS denominator"
            in query.text
        )

    def test_comparison_has_one_column_per_metric(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(QuestionType.COMPARISON, ["G", "A", "GperAPP"], player="Luke Bangs")
        )

        assert "AS m0" in query.text
        assert "sum(coalesce(md.assists, 0)) AS m1" in query.text
        assert "AS m2_numerator" in query.text
        assert "count(md) AS m2_denominator" in query.text


class TestRanking:

    def test_descending_ranking_with_tie_break(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(QuestionType.RANKING, ["G"], player="Luke Bangs", ranking_group="team")
        )

        assert "WITH f.team AS label" in query.text
        assert "ORDER BY value DESC, label ASC" in query.text
        assert "LIMIT $limit" in query.text
        assert query.params["limit"] == DEFAULT_RANKING_LIMIT

    def test_ascending_ranking(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(QuestionType.RANKING, ["Y"], ranking_order="asc", ranking_group="player")
        )

        assert "WITH p.playerName AS label" in query.text
        assert "ORDER BY value ASC, label ASC" in query.text

    def test_limit_is_clamped(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(QuestionType.RANKING, ["G"], ranking_limit=500, ranking_group="player")
        )

        assert query.params["limit"] == MAX_RANKING_LIMIT

    def test_rate_ranking_returns_all_groups(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(
                QuestionType.RANKING, ["GperAPP"], ranking_group="season",
                rate=RatePair(numerator="G", denominator="APP"),
            )
        )

        assert "WITH f.season AS label" in query.text
        assert "denominator > 0" in query.text
        assert "limit" not in query.params


class TestGuards:

    def test_clarification_cannot_be_synthesized(self, synthesizer):
        analysis = _analysis(QuestionType.SINGLE_STAT, ["G"])
        analysis.flag_clarification("unknown_player")

        with pytest.raises(ValueError):
            synthesizer.synthesize(analysis)

    def test_missing_metric_cannot_be_synthesized(self, synthesizer):
        with pytest.raises(ValueError):
            synthesizer.synthesize(_analysis(QuestionType.CLUB_AGGREGATE, []))

    def test_derived_rate_has_no_single_expression(self, synthesizer, reference):
        with pytest.raises(ValueError):
            synthesizer.expression(reference.metric("PCR"))


GOALS_SUM = "sum(coalesce(md.goals, 0) + coalesce(md.penaltiesScored, 0))"
TEAM_KEYS = [f"{n}s" for n in range(1, 9)]


class TestPenaltyInclusion:
    """Goal counts always add penalties scored to open-play goals."""

    @pytest.mark.parametrize("team", TEAM_KEYS)
    def test_player_goals_for_each_team(self, synthesizer, team):
        query = synthesizer.synthesize(
            _analysis(QuestionType.TEAM_STAT, ["G"], player="Luke Bangs", teams=[team])
        )

        assert query.text.endswith(f"RETURN {GOALS_SUM} AS value")
        assert query.params["teamName"] == team_display(team)

    @pytest.mark.parametrize("team", TEAM_KEYS)
    def test_team_goals_without_player(self, synthesizer, team):
        query = synthesizer.synthesize(_analysis(QuestionType.CLUB_AGGREGATE, ["G"], teams=[team]))

        assert GOALS_SUM in query.text

    def test_club_wide_goals(self, synthesizer):
        query = synthesizer.synthesize(_analysis(QuestionType.CLUB_AGGREGATE, ["G"]))

        assert GOALS_SUM in query.text

    @pytest.mark.parametrize("team", TEAM_KEYS)
    def test_goal_ranking(self, synthesizer, team):
        query = synthesizer.synthesize(
            _analysis(QuestionType.RANKING, ["G"], teams=[team], ranking_group="player")
        )

        assert f"{GOALS_SUM} AS value" in query.text

    def test_goals_per_appearance_numerator(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(
                QuestionType.RATE, ["GperAPP"], player="Luke Bangs", teams=["3s"],
                rate=RatePair(numerator="G", denominator="APP"),
            )
        )

        assert f"RETURN {GOALS_SUM} AS numerator" in query.text

    def test_goals_per_appearance_ranking(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(
                QuestionType.RANKING, ["GperAPP"], ranking_group="player",
                rate=RatePair(numerator="G", denominator="APP"),
            )
        )

        assert f"{GOALS_SUM} AS numerator" in query.text

    def test_goals_in_comparison(self, synthesizer):
        query = synthesizer.synthesize(
            _analysis(QuestionType.COMPARISON, ["G", "A"], player="Luke Bangs", teams=["8s"])
        )

        assert f"{GOALS_SUM} AS m0" in query.text
