from __future__ import annotations

import dataclasses
from typing import Iterable

from ..common.numbers import as_float, round0, round1, safe_ratio
from ..common.ordering import sort_desc
from ..core.constants import (
    DEFAULT_TOTAL_SCORE,
    LOW_SCORE_THRESHOLD,
    LOW_SCORERS_LIMIT,
    TOP_SCORERS_LIMIT,
)
from ..core.enums import LeaveType, RequestStatus
from ..leaves.model import LeaveRequest
from ..users.model import User
from .model import AttendanceReport, AttendanceStanding


def build_standings(users: Iterable[User], leaves: Iterable[LeaveRequest]) -> AttendanceReport:
    """Attendance leaderboard: current score per non-admin user, highest first."""

    personal_days: dict[str, list[float]] = {}
    for leave in leaves:
        if leave.leave_type == LeaveType.PERSONAL and leave.status == RequestStatus.APPROVED:
            personal_days.setdefault(leave.user_id, []).append(as_float(leave.days_count))

    standings = []
    for user in users:
        if user.is_admin:
            continue
        days = personal_days.get(user.id, [])
        current = as_float(user.total_score, default=DEFAULT_TOTAL_SCORE)
        standings.append(
            AttendanceStanding(
                user_id=user.id,
                name=user.name,
                department=user.department,
                position=user.position,
                phone=user.phone,
                current_score=current,
                total_deduction=sum(days),
                personal_leave_count=len(days),
                personal_leave_days=sum(days),
                score_percent=round0(current),
            )
        )

    ordered = [
        dataclasses.replace(s, rank=i)
        for i, s in enumerate(sort_desc(standings, key=lambda s: s.current_score), start=1)
    ]
    if ordered:
        average = round1(safe_ratio(sum(s.current_score for s in ordered), len(ordered)))
    else:
        average = DEFAULT_TOTAL_SCORE

    low = [s for s in ordered if s.current_score < LOW_SCORE_THRESHOLD]
    return AttendanceReport(
        standings=tuple(ordered),
        average_score=average,
        top_scorers=tuple(ordered[:TOP_SCORERS_LIMIT]),
        low_scorers=tuple(low[-LOW_SCORERS_LIMIT:]),
    )
