from __future__ import annotations

import dataclasses
from typing import Iterable, Sequence

from ..common.numbers import percentage, round1, safe_dimension_score, safe_ratio
from ..common.ordering import sort_desc
from ..core.constants import (
    DIMENSION_MAX_SCORE,
    SCORE_BUCKETS,
    TOP_PERFORMERS_LIMIT,
    UNASSIGNED_DEPARTMENT,
)
from ..core.enums import Dimension
from ..users.model import User
from .accumulator import ScoreAccumulator, record_total
from .aggregator import DIMENSIONS, index_users, resolve_evaluatee
from .model import AggregateSummary, DepartmentRollup, DimensionStat, EvaluationRecord, ScoreBucket


def rank(summaries: Iterable[AggregateSummary]) -> list[AggregateSummary]:
    ordered = sort_desc(summaries, key=lambda s: s.total_average)
    return [dataclasses.replace(s, rank=i) for i, s in enumerate(ordered, start=1)]


def top_performers(summaries: Iterable[AggregateSummary], limit: int = TOP_PERFORMERS_LIMIT) -> list[AggregateSummary]:
    return rank(summaries)[:limit]


def rollup_by_department(records: Iterable[EvaluationRecord], users: Iterable[User]) -> list[DepartmentRollup]:
    user_map = index_users(users)
    accumulators: dict[str, ScoreAccumulator] = {}
    participants: dict[str, set[str]] = {}

    for record in records:
        user = resolve_evaluatee(record, user_map)
        if user is None:
            continue
        dept = user.department or UNASSIGNED_DEPARTMENT
        acc = accumulators.get(dept)
        if acc is None:
            acc = ScoreAccumulator(DIMENSIONS)
            accumulators[dept] = acc
            participants[dept] = set()
        acc.add(record.scores)
        participants[dept].add(user.id)

    rollups = [
        DepartmentRollup(
            department=dept,
            average_score=acc.total_average(),
            participant_count=len(participants[dept]),
            evaluation_count=acc.count,
            dimension_averages=acc.averages(),
        )
        for dept, acc in accumulators.items()
    ]
    ordered = sort_desc(rollups, key=lambda r: r.average_score)
    return [dataclasses.replace(r, rank=i) for i, r in enumerate(ordered, start=1)]


def score_distribution(records: Iterable[EvaluationRecord]) -> list[ScoreBucket]:
    """Completed records counted into fixed half-open buckets; all buckets always present."""

    counts = [0] * len(SCORE_BUCKETS)
    for record in records:
        if not record.is_completed:
            continue
        total = record_total(record.scores, DIMENSIONS)
        for i, (lower, _) in enumerate(SCORE_BUCKETS):
            if total >= lower:
                counts[i] += 1
                break
    return [ScoreBucket(label=label, count=counts[i]) for i, (_, label) in enumerate(SCORE_BUCKETS)]


def dimension_overview(records: Iterable[EvaluationRecord]) -> list[DimensionStat]:
    """Average of each dimension over every completed record."""

    sums = {d: 0.0 for d in Dimension}
    count = 0
    for record in records:
        if not record.is_completed:
            continue
        count += 1
        for d in Dimension:
            sums[d] += safe_dimension_score(getattr(record, d.value))

    return [
        DimensionStat(dimension=d, label=d.label, score=round1(safe_ratio(sums[d], count)), full_score=DIMENSION_MAX_SCORE)
        for d in Dimension
    ]


@dataclasses.dataclass(frozen=True)
class CompletionStats:
    participants: int
    completed: int
    possible: int
    completion_rate: float


def completion_stats(records: Sequence[EvaluationRecord], users: Iterable[User]) -> CompletionStats:
    """Everyone (admins excluded) may rate everyone else once."""

    participants = sum(1 for u in users if not u.is_admin)
    possible = participants * (participants - 1) if participants > 1 else 0
    completed = sum(1 for r in records if r.is_completed)
    return CompletionStats(
        participants=participants,
        completed=completed,
        possible=possible,
        completion_rate=percentage(completed, possible),
    )
