"""Domain entities for statistic metrics, plus the static alias → key table."""

from dataclasses import dataclass, field
from enum import Enum


class Aggregation(str, Enum):
    SUM = "Sum"
    COUNT = "Count"
    AVG = "Avg"
    DERIVED_RATE = "DerivedRate"


class FormatKind(str, Enum):
    INTEGER = "Integer"
    DECIMAL = "Decimal"
    PERCENTAGE = "Percentage"


@dataclass(frozen=True)
class MetricFormat:
    """How a metric value is rendered: ``Integer``, ``Decimal(n)`` or ``Percentage(n)``."""

    kind: FormatKind = FormatKind.INTEGER
    places: int = 0

    @classmethod
    def parse(cls, raw: str) -> "MetricFormat":
        """Parse ``"Integer"``, ``"Decimal(1)"``, ``"Percentage(1)"``.

        Raises:
            ValueError: when the format string is not recognised.
        """
        text = raw.strip()
        if text == FormatKind.INTEGER.value:
            return cls(FormatKind.INTEGER, 0)
        for kind in (FormatKind.DECIMAL, FormatKind.PERCENTAGE):
            prefix = f"{kind.value}("
            if text.startswith(prefix) and text.endswith(")"):
                places = int(text[len(prefix):-1])
                if places < 0:
                    raise ValueError(f"negative decimal places in {raw!r}")
                return cls(kind, places)
        raise ValueError(f"unknown metric format {raw!r}")

    def __str__(self) -> str:
        if self.kind is FormatKind.INTEGER:
            return self.kind.value
        return f"{self.kind.value}({self.places})"


@dataclass(frozen=True)
class MetricDefinition:
    """A canonical statistic and everything needed to query and phrase it.

    ``source_fields`` are MatchDetail properties summed together; DerivedRate
    metrics instead name a ``numerator`` and ``denominator`` metric key.
    ``zero_phrase`` completes "<subject> ..." when the value is 0, e.g.
    "has not scored any goals".
    """

    key: str
    label: str
    singular: str
    plural: str
    verb: str
    aggregation: Aggregation
    aliases: tuple[str, ...] = ()
    source_fields: tuple[str, ...] = ()
    numerator: str | None = None
    denominator: str | None = None
    format: MetricFormat = field(default_factory=MetricFormat)
    zero_phrase: str | None = None
    template: str | None = None

    @property
    def is_rate(self) -> bool:
        return self.aggregation is Aggregation.DERIVED_RATE

    def unit(self, value: float) -> str:
        """Singular unit for exactly one, plural otherwise."""
        return self.singular if value == 1 else self.plural
