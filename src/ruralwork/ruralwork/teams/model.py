from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.numbers import as_float
from ..core.enums import ActivityStatus, TeamDimension


@dataclass(frozen=True)
class TeamEvaluation:
    id: str
    activity_id: str
    evaluator_id: str
    team_id: str
    work_quality_score: Any = None
    cooperation_score: Any = None
    efficiency_score: Any = None
    innovation_score: Any = None
    service_attitude_score: Any = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def scores(self) -> dict[str, Any]:
        return {d.value: getattr(self, d.value) for d in TeamDimension}

    @property
    def total_score(self) -> float:
        return sum(as_float(v) for v in self.scores.values())


@dataclass(frozen=True)
class TeamSummary:
    team_id: str
    team_name: str
    dimension_averages: dict[str, float]
    total_average: float
    evaluation_count: int
    rank: Optional[int] = None


@dataclass(frozen=True)
class TeamActivity:
    """A scoring round for the work teams; ratings are only taken while it is open."""

    id: str
    title: str
    status: ActivityStatus
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    description: str = ""
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def is_open(self, now: datetime) -> bool:
        if self.status != ActivityStatus.ACTIVE:
            return False
        if self.start_time and now < self.start_time:
            return False
        if self.end_time and now > self.end_time:
            return False
        return True
