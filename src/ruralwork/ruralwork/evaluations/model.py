from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional

from ..common.numbers import safe_dimension_score
from ..core.enums import Dimension, EvaluationState


@dataclass(frozen=True)
class EvaluationKey:
    """Natural key: one evaluation per evaluator, evaluatee and year."""

    evaluator_id: str
    evaluatee_id: str
    evaluation_year: str


@dataclass(frozen=True)
class EvaluationRecord:
    """One directed peer rating (draft or completed)."""

    id: str
    evaluator_id: str
    evaluatee_id: str
    evaluation_year: str
    score_de: float = 0.0
    score_neng: float = 0.0
    score_qin: float = 0.0
    score_ji: float = 0.0
    score_lian: float = 0.0
    is_completed: bool = False
    comment: str = ""
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> EvaluationKey:
        return EvaluationKey(self.evaluator_id, self.evaluatee_id, self.evaluation_year)

    @property
    def state(self) -> EvaluationState:
        return EvaluationState.COMPLETED if self.is_completed else EvaluationState.DRAFT

    @property
    def scores(self) -> Mapping[str, float]:
        return {d.value: getattr(self, d.value) for d in Dimension}

    @property
    def total_score(self) -> float:
        """Always derived from the dimensions; out-of-range values count as 0, as in aggregation."""
        return float(sum(safe_dimension_score(v) for v in self.scores.values()))


@dataclass(frozen=True)
class AggregateSummary:
    """Per-evaluatee averages. Derived on demand, never persisted."""

    user_id: str
    name: str
    department: Optional[str]
    position: Optional[str]
    phone: Optional[str]
    score_de: float
    score_neng: float
    score_qin: float
    score_ji: float
    score_lian: float
    total_average: float
    evaluation_count: int
    rank: Optional[int] = None

    def to_row(self) -> dict:
        """Export shape; column order is relied on by the spreadsheet export."""

        return {
            "rank": self.rank,
            "name": self.name,
            "department": self.department or "",
            "position": self.position or "",
            "score_de": self.score_de,
            "score_neng": self.score_neng,
            "score_qin": self.score_qin,
            "score_ji": self.score_ji,
            "score_lian": self.score_lian,
            "total_average": self.total_average,
            "evaluation_count": self.evaluation_count,
        }


@dataclass(frozen=True)
class DepartmentRollup:
    department: str
    average_score: float
    participant_count: int
    evaluation_count: int
    dimension_averages: Mapping[str, float] = field(default_factory=dict)
    rank: Optional[int] = None


@dataclass(frozen=True)
class ScoreBucket:
    label: str
    count: int


@dataclass(frozen=True)
class DimensionStat:
    dimension: Dimension
    label: str
    score: float
    full_score: float


@dataclass(frozen=True)
class EvaluationTarget:
    """A colleague the current user can rate, with the rating's state."""

    user_id: str
    name: str
    department: Optional[str]
    position: Optional[str]
    state: EvaluationState
    evaluation_id: Optional[str] = None
