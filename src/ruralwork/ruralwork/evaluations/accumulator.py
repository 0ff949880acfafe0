from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..common.numbers import round1, safe_dimension_score, safe_ratio


class ScoreAccumulator:
    """Running per-dimension sums for one subject (a person, department or team).

    Each added record contributes its validated dimension values and a total
    recomputed from those same values, so totals and dimensions always agree.
    """

    def __init__(self, dimensions: Iterable[str]):
        self.sums: dict[str, float] = {d: 0.0 for d in dimensions}
        self.total = 0.0
        self.count = 0

    def add(self, scores: Mapping[str, Any]) -> float:
        record_total = 0.0
        for dimension in self.sums:
            value = safe_dimension_score(scores.get(dimension))
            self.sums[dimension] += value
            record_total += value
        self.total += record_total
        self.count += 1
        return record_total

    def average(self, dimension: str) -> float:
        return round1(safe_ratio(self.sums[dimension], self.count))

    def averages(self) -> dict[str, float]:
        return {d: self.average(d) for d in self.sums}

    def total_average(self) -> float:
        # raw total / count; re-summing the rounded dimension averages would drift
        return round1(safe_ratio(self.total, self.count))


def record_total(scores: Mapping[str, Any], dimensions: Iterable[str]) -> float:
    return sum(safe_dimension_score(scores.get(d)) for d in dimensions)
