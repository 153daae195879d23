"""Unit tests for reference data loading - metric table, aliases and roster."""

import pytest

from statbot.application.interfaces.graph_store import GraphStore
from statbot.application.services.reference_data import (
    ReferenceData,
    fetch_roster,
    load_reference_data,
    load_roster,
)
from statbot.domain.entities import Aggregation, FormatKind, MetricDefinition
from statbot.domain.exceptions import ReferenceDataError


class FakeGraphStore(GraphStore):
    def __init__(self, rows):
        self._rows = rows
        self.queries = []

    async def run(self, query):
        self.queries.append(query)
        return self._rows

    async def close(self):
        pass


def _metric(key: str, aliases=(), **kwargs) -> MetricDefinition:
    defaults = dict(
        label=key, singular=key.lower(), plural=key.lower(), verb="recorded",
        aggregation=Aggregation.SUM, source_fields=(key.lower(),),
    )
    defaults.update(kwargs)
    return MetricDefinition(key=key, aliases=tuple(aliases), **defaults)


class TestPackagedTable:

    def test_every_alias_resolves(self, base_reference):
        for alias, key in base_reference.alias_scan:
            assert base_reference.resolve_metric(alias) == key

    def test_aliases_are_scanned_longest_first(self, base_reference):
        lengths = [len(alias) for alias, _ in base_reference.alias_scan]
        assert lengths == sorted(lengths, reverse=True)

    def test_keys_resolve_case_insensitively(self, base_reference):
        assert base_reference.resolve_metric("G") == "G"
        assert base_reference.resolve_metric("gperapp") == "GperAPP"

    def test_derived_rates_reference_base_metrics(self, base_reference):
        pcr = base_reference.metric("PCR")
        assert pcr.is_rate
        assert (pcr.numerator, pcr.denominator) == ("PSC", "PTAKEN")
        assert pcr.format.kind is FormatKind.PERCENTAGE
        assert base_reference.derived_rate_for("FTP", "APP") == "FTPperAPP"

    def test_goals_include_penalties(self, base_reference):
        assert base_reference.metric("G").source_fields == ("goals", "penaltiesScored")

    def test_unknown_surface(self, base_reference):
        assert base_reference.resolve_metric("nutmegs") is None


class TestFromDefinitions:

    def test_first_alias_definition_wins(self):
        reference = ReferenceData.from_definitions([
            _metric("A1", aliases=["shared"]),
            _metric("B1", aliases=["shared", "other"]),
        ])

        assert reference.resolve_metric("shared") == "A1"
        assert reference.resolve_metric("other") == "B1"

    def test_duplicate_key_is_rejected(self):
        with pytest.raises(ReferenceDataError):
            ReferenceData.from_definitions([_metric("X"), _metric("X")])

    def test_rate_with_unknown_part_is_rejected(self):
        rate = _metric(
            "XperY", aggregation=Aggregation.DERIVED_RATE, source_fields=(),
            numerator="X", denominator="Y",
        )
        with pytest.raises(ReferenceDataError):
            ReferenceData.from_definitions([_metric("X"), rate])

    def test_with_roster_dedupes_case_insensitively(self):
        reference = ReferenceData.from_definitions([_metric("X")], roster=["Luke Bangs"])

        extended = reference.with_roster(["luke bangs", " Oscar   Turner "])

        assert extended.roster == ("Luke Bangs", "Oscar Turner")
        assert reference.roster == ("Luke Bangs",)


class TestYamlLoading:

    def test_missing_file(self, tmp_path):
        with pytest.raises(ReferenceDataError):
            load_reference_data(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "metrics.yaml"
        path.write_text("metrics: [unclosed", encoding="utf-8")

        with pytest.raises(ReferenceDataError):
            load_reference_data(path)

    def test_unknown_format(self, tmp_path):
        path = tmp_path / "metrics.yaml"
        path.write_text(
            "metrics:\n"
            "  - key: G\n"
            "    aggregation: Sum\n"
            "    source_fields: [goals]\n"
            "    format: Fraction\n",
            encoding="utf-8",
        )

        with pytest.raises(ReferenceDataError):
            load_reference_data(path)

    def test_sum_without_fields(self, tmp_path):
        path = tmp_path / "metrics.yaml"
        path.write_text("metrics:\n  - key: G\n    aggregation: Sum\n", encoding="utf-8")

        with pytest.raises(ReferenceDataError):
            load_reference_data(path)

    def test_roster_file(self, tmp_path, base_reference):
        roster = tmp_path / "roster.yaml"
        roster.write_text("players:\n  - Luke Bangs\n  - Oscar Turner\n", encoding="utf-8")

        assert load_roster(roster) == ["Luke Bangs", "Oscar Turner"]


@pytest.mark.asyncio
async def test_fetch_roster_reads_player_names():
    store = FakeGraphStore([{"name": "Luke Bangs"}, {"name": None}, {"name": "Oscar Turner"}])

    names = await fetch_roster(store, "testClub")

    assert names == ["Luke Bangs", "Oscar Turner"]
    assert store.queries[0].params == {"graphLabel": "testClub"}
