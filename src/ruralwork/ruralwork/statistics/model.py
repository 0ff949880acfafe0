from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..attendance.model import AttendanceReport
from ..evaluations.model import AggregateSummary, DepartmentRollup, DimensionStat, ScoreBucket
from ..evaluations.ranking import CompletionStats
from ..leaves.model import LeaveStats


@dataclass(frozen=True)
class UserStats:
    total: int
    active: int
    by_role: dict[str, int]
    recent: int


@dataclass(frozen=True)
class VoteStats:
    total_votes: int
    active_votes: int
    total_records: int
    participation_rate: float


@dataclass(frozen=True)
class EvaluationStats:
    evaluation_year: str
    total_completed: int
    average_score: float
    dimension_stats: Sequence[DimensionStat]
    top_performers: Sequence[AggregateSummary]
    user_scores: Sequence[AggregateSummary]
    departments: Sequence[DepartmentRollup]
    distribution: Sequence[ScoreBucket]
    completion: CompletionStats


@dataclass(frozen=True)
class Dashboard:
    """Everything the admin statistics page shows, computed from one snapshot."""

    users: UserStats
    votes: VoteStats
    evaluations: EvaluationStats
    leaves: LeaveStats
    attendance: AttendanceReport
