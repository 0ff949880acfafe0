from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..attendance.model import ScoreAdjustment
from ..core.enums import LeaveType, RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    id: str
    user_id: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    days_count: float
    reason: str
    status: RequestStatus = RequestStatus.PENDING
    score_deduction: Optional[float] = None
    approver_id: Optional[str] = None
    approver_comment: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_personal(self) -> bool:
        return self.leave_type == LeaveType.PERSONAL


@dataclass(frozen=True)
class LeaveDecision:
    """Outcome of an approval: the stored request plus the score change, if any."""

    request: LeaveRequest
    adjustment: Optional[ScoreAdjustment] = None


@dataclass(frozen=True)
class LeaveStats:
    total: int
    pending: int
    approved: int
    rejected: int
    approved_days: float
    by_type: dict[str, int]
