"""Reference tables: metric definitions, alias index and roster names.

Loaded once at application startup via the FastAPI lifespan and passed by
reference into every pipeline component. Instances are immutable; adding
roster names produces a new instance.
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml

from statbot.application.interfaces.graph_store import GraphStore
from statbot.domain.entities import Aggregation, GraphQuery, MetricDefinition, MetricFormat
from statbot.domain.exceptions import ReferenceDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceData:
    """Read-only lookup tables shared by all requests."""

    metrics: Mapping[str, MetricDefinition]
    # (alias, key) pairs, longest alias first, for maximal-munch scanning
    alias_scan: tuple[tuple[str, str], ...]
    # alias → key, first definition wins
    alias_lookup: Mapping[str, str]
    rate_lookup: Mapping[tuple[str, str], str]
    roster: tuple[str, ...] = ()
    keys_folded: Mapping[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable[MetricDefinition],
        roster: Iterable[str] = (),
    ) -> "ReferenceData":
        metrics: dict[str, MetricDefinition] = {}
        alias_lookup: dict[str, str] = {}
        rate_lookup: dict[tuple[str, str], str] = {}

        for definition in definitions:
            if definition.key in metrics:
                raise ReferenceDataError("metrics", f"duplicate metric key {definition.key!r}")
            metrics[definition.key] = definition
            for alias in definition.aliases:
                normalized = " ".join(alias.lower().split())
                if normalized in alias_lookup:
                    logger.debug(
                        "Alias %r already maps to %s; ignoring for %s",
                        normalized, alias_lookup[normalized], definition.key,
                    )
                    continue
                alias_lookup[normalized] = definition.key

        for definition in metrics.values():
            if not definition.is_rate:
                continue
            for part in (definition.numerator, definition.denominator):
                if part not in metrics:
                    raise ReferenceDataError(
                        "metrics",
                        f"{definition.key} references unknown metric {part!r}",
                    )
            rate_lookup.setdefault((definition.numerator, definition.denominator), definition.key)

        alias_scan = tuple(
            sorted(alias_lookup.items(), key=lambda item: (-len(item[0]), item[0]))
        )
        return cls(
            metrics=MappingProxyType(metrics),
            alias_scan=alias_scan,
            alias_lookup=MappingProxyType(alias_lookup),
            rate_lookup=MappingProxyType(rate_lookup),
            roster=_dedupe_names(roster),
            keys_folded=MappingProxyType({key.lower(): key for key in metrics}),
        )

    def metric(self, key: str) -> MetricDefinition:
        return self.metrics[key]

    def resolve_metric(self, surface: str) -> str | None:
        """Map a canonical key or any alias to its canonical key."""
        if surface in self.metrics:
            return surface
        normalized = " ".join(surface.lower().split())
        if normalized in self.alias_lookup:
            return self.alias_lookup[normalized]
        return self.keys_folded.get(normalized)

    def derived_rate_for(self, numerator: str, denominator: str) -> str | None:
        return self.rate_lookup.get((numerator, denominator))

    def single_word_aliases(self) -> tuple[str, ...]:
        return tuple(alias for alias, _ in self.alias_scan if " " not in alias)

    def with_roster(self, names: Iterable[str]) -> "ReferenceData":
        """Return a copy whose roster is extended with ``names``."""
        return replace(self, roster=_dedupe_names((*self.roster, *names)))


def _dedupe_names(names: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        cleaned = " ".join(str(name).split())
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            result.append(cleaned)
    return tuple(result)


def _parse_definition(raw: dict[str, Any], source: str) -> MetricDefinition:
    try:
        key = str(raw["key"])
        aggregation = Aggregation(raw["aggregation"])
        metric_format = MetricFormat.parse(str(raw.get("format", "Integer")))
    except (KeyError, ValueError) as exc:
        raise ReferenceDataError(source, f"invalid metric entry {raw!r}: {exc}") from exc

    source_fields = tuple(raw.get("source_fields") or ())
    if aggregation in (Aggregation.SUM, Aggregation.AVG) and not source_fields:
        raise ReferenceDataError(source, f"{key} needs source_fields for {aggregation.value}")
    if aggregation is Aggregation.DERIVED_RATE and not (raw.get("numerator") and raw.get("denominator")):
        raise ReferenceDataError(source, f"{key} needs numerator and denominator")

    plural = str(raw.get("plural") or raw.get("label") or key).lower()
    return MetricDefinition(
        key=key,
        label=str(raw.get("label") or key),
        singular=str(raw.get("singular") or plural),
        plural=plural,
        verb=str(raw.get("verb") or "recorded"),
        aggregation=aggregation,
        aliases=tuple(str(a) for a in raw.get("aliases") or ()),
        source_fields=source_fields,
        numerator=raw.get("numerator"),
        denominator=raw.get("denominator"),
        format=metric_format,
        zero_phrase=raw.get("zero_phrase"),
        template=raw.get("template"),
    )


def _read_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ReferenceDataError(str(path), "file not found") from exc
    except yaml.YAMLError as exc:
        raise ReferenceDataError(str(path), f"invalid YAML: {exc}") from exc


def load_roster(roster_file: str | Path) -> list[str]:
    """Read player names from a YAML file with a top-level ``players`` list."""
    path = Path(roster_file)
    data = _read_yaml(path) or {}
    players = data.get("players") if isinstance(data, dict) else data
    if not isinstance(players, list):
        raise ReferenceDataError(str(path), "expected a 'players' list")
    return [str(p) for p in players if p]


def load_reference_data(
    metrics_file: str | Path,
    roster_file: str | Path | None = None,
) -> ReferenceData:
    """Load and validate the metric table (and optional roster) from YAML.

    Raises:
        ReferenceDataError: when a file is missing or malformed.
    """
    path = Path(metrics_file)
    data = _read_yaml(path)
    if not isinstance(data, dict) or not isinstance(data.get("metrics"), list):
        raise ReferenceDataError(str(path), "expected a top-level 'metrics' list")

    definitions = [_parse_definition(entry, str(path)) for entry in data["metrics"]]
    roster = load_roster(roster_file) if roster_file else []

    reference = ReferenceData.from_definitions(definitions, roster)
    logger.info(
        "Reference data loaded: %d metrics, %d aliases, %d roster names",
        len(reference.metrics), len(reference.alias_lookup), len(reference.roster),
    )
    return reference


_ROSTER_QUERY = (
    "MATCH (p:Player {graphLabel: $graphLabel})\n"
    "WHERE p.playerName IS NOT NULL\n"
    "RETURN DISTINCT p.playerName AS name\n"
    "ORDER BY name ASC"
)


async def fetch_roster(store: GraphStore, graph_label: str) -> list[str]:
    """Read every player name from the graph.

    Raises:
        GraphStoreError: when the store cannot be queried.
    """
    rows = await store.run(GraphQuery(text=_ROSTER_QUERY, params={"graphLabel": graph_label}))
    return [row["name"] for row in rows if isinstance(row.get("name"), str)]
