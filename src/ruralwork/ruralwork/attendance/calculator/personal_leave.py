from __future__ import annotations

from typing import Iterable, Optional

from ...common.numbers import as_float
from ...core.constants import MIN_TOTAL_SCORE
from ...core.enums import LeaveType, RequestStatus
from ...leaves.model import LeaveRequest
from .base import DeductionPolicy


class PersonalLeaveDeductionPolicy(DeductionPolicy):
    """Standard rule: approved personal leave costs one point per day; other leave is free."""

    def deduction_for(self, leave: LeaveRequest) -> float:
        if leave.leave_type != LeaveType.PERSONAL or leave.status != RequestStatus.APPROVED:
            return 0.0
        return max(as_float(leave.days_count), 0.0)


def deduct(current_score: float, amount: float, *, floor: float = MIN_TOTAL_SCORE) -> float:
    """Score after removing ``amount``; never below ``floor``."""

    return max(floor, as_float(current_score) - as_float(amount))


def apply_leave_deduction(
    current_score: float,
    leaves: Iterable[LeaveRequest],
    *,
    policy: Optional[DeductionPolicy] = None,
) -> float:
    policy = policy or PersonalLeaveDeductionPolicy()
    score = as_float(current_score)
    for leave in leaves:
        amount = policy.deduction_for(leave)
        if amount:
            score = deduct(score, amount)
    return score
