"""Numeric coercion and rendering for statistic values.

``coerce_number`` is the single conversion point between whatever the graph
store returns and the plain ``int``/``float`` the rest of the pipeline uses.
"""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from statbot.domain.entities import FormatKind, MetricFormat

_TWO_POW_32 = 2 ** 32


def coerce_number(value: Any) -> int | float:
    """Convert a raw aggregate to a plain number; anything unusable becomes 0.

    Handles ``None``, bools, ints, floats (NaN/inf → 0), ``Decimal``, numeric
    strings, and 64-bit integers serialised as ``{"low": ..., "high": ...}``.
    """
    if value is None or isinstance(value, bool):
        return int(bool(value))
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    if isinstance(value, Decimal):
        if not value.is_finite():
            return 0
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            return 0
        if not math.isfinite(number):
            return 0
        return int(number) if number.is_integer() and "." not in text else number
    if isinstance(value, dict) and "low" in value and "high" in value:
        low = coerce_number(value["low"])
        high = coerce_number(value["high"])
        return int(high) * _TWO_POW_32 + (int(low) % _TWO_POW_32)
    if hasattr(value, "to_native"):
        return coerce_number(value.to_native())
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return number if math.isfinite(number) else 0


def _quantize(value: float, places: int) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    try:
        return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return Decimal(0).quantize(exponent)


def round_for_format(value: float, fmt: MetricFormat) -> float:
    """The number a reader sees once ``fmt`` has been applied."""
    if fmt.kind is FormatKind.PERCENTAGE:
        return float(_quantize(value * 100, fmt.places))
    places = 0 if fmt.kind is FormatKind.INTEGER else fmt.places
    return float(_quantize(value, places))


def format_value(value: float, fmt: MetricFormat) -> str:
    """Render ``value`` per ``fmt``; percentages expect a 0..1 ratio."""
    if fmt.kind is FormatKind.INTEGER:
        return f"{int(_quantize(value, 0)):,}"
    if fmt.kind is FormatKind.DECIMAL:
        return f"{_quantize(value, fmt.places):,.{fmt.places}f}"
    return f"{_quantize(value * 100, fmt.places):.{fmt.places}f}%"
