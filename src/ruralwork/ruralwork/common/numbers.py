from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ..core.constants import DIMENSION_MAX_SCORE, DIMENSION_MIN_SCORE

_ONE_DECIMAL = Decimal("0.1")


def round1(value: float) -> float:
    """Round half-up to one decimal (2/3 * 100 -> 66.7)."""

    return float(Decimal(str(value)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is zero."""

    if not denominator:
        return 0.0
    return numerator / denominator


def percentage(part: float, whole: float) -> float:
    return round1(safe_ratio(part, whole) * 100)


def as_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


def safe_dimension_score(value: Any, *, maximum: float = DIMENSION_MAX_SCORE) -> float:
    """Contribution of one stored dimension score to an aggregate.

    Input is validated on submission; anything that still slips through
    (out of range, NaN, missing) counts as 0 instead of poisoning the sums.
    """

    if isinstance(value, bool):
        return 0.0
    number = as_float(value, default=0.0)
    if not DIMENSION_MIN_SCORE <= number <= maximum:
        return 0.0
    return number


def round0(value: float) -> int:
    """Round half-up to a whole number."""

    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
