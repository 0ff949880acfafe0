from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ApplyDeduction:
    """Command: subtract ``amount`` from a user's attendance score.

    ``idempotency_key`` identifies the business event (e.g. ``leave:<id>``); the
    same key is applied at most once, so a retried command never double-deducts.
    """

    user_id: str
    amount: float
    reason: str
    idempotency_key: str


@dataclass(frozen=True)
class ScoreAdjustment:
    idempotency_key: str
    user_id: str
    amount: float
    reason: str
    score_before: float
    score_after: float
    replayed: bool = False

    @property
    def applied(self) -> float:
        """Points actually removed (less than ``amount`` when the floor kicked in)."""
        return self.score_before - self.score_after


@dataclass(frozen=True)
class AttendanceStanding:
    user_id: str
    name: str
    department: Optional[str]
    position: Optional[str]
    phone: Optional[str]
    current_score: float
    total_deduction: float
    personal_leave_count: int
    personal_leave_days: float
    score_percent: int
    rank: Optional[int] = None


@dataclass(frozen=True)
class AttendanceReport:
    standings: tuple[AttendanceStanding, ...]
    average_score: float
    top_scorers: tuple[AttendanceStanding, ...]
    low_scorers: tuple[AttendanceStanding, ...]
