from __future__ import annotations

from datetime import date

from src.ruralwork.ruralwork.attendance.standings import build_standings
from src.ruralwork.ruralwork.core.enums import LeaveType, RequestStatus, Role
from src.ruralwork.ruralwork.leaves.model import LeaveRequest


def leave(user_id: str, days: float, *, leave_type=LeaveType.PERSONAL, status=RequestStatus.APPROVED) -> LeaveRequest:
    return LeaveRequest(
        id=f"{user_id}-{days}",
        user_id=user_id,
        leave_type=leave_type,
        start_date=date(2026, 4, 1),
        end_date=date(2026, 4, 2),
        days_count=days,
        reason="事假",
        status=status,
    )


def test_standings_sorted_desc_and_exclude_admins(make_user):
    users = [
        make_user("a", role=Role.ADMIN, total_score=50),
        make_user("u1", total_score=97),
        make_user("u2", total_score=100),
        make_user("u3", total_score=97),
    ]

    report = build_standings(users, [])

    assert [(s.user_id, s.rank) for s in report.standings] == [("u2", 1), ("u1", 2), ("u3", 3)]
    assert report.average_score == 98.0


def test_leave_totals_only_from_approved_personal(make_user):
    users = [make_user("u1", total_score=97)]
    leaves = [
        leave("u1", 1),
        leave("u1", 2),
        leave("u1", 5, leave_type=LeaveType.SICK),
        leave("u1", 4, status=RequestStatus.PENDING),
    ]

    (standing,) = build_standings(users, leaves).standings

    assert standing.personal_leave_count == 2
    assert standing.personal_leave_days == 3
    assert standing.total_deduction == 3
    assert standing.current_score == 97


def test_score_percent_rounds_half_up(make_user):
    (standing,) = build_standings([make_user("u1", total_score=92.5)], []).standings

    assert standing.score_percent == 93


def test_empty_report_defaults_to_full_average():
    report = build_standings([], [])

    assert report.standings == ()
    assert report.average_score == 100.0
    assert report.low_scorers == ()


def test_top_and_low_scorers(make_user):
    scores = [100, 99, 98, 96, 95, 94.5, 90, 80, 70, 60, 50]
    users = [make_user(str(i), total_score=s) for i, s in enumerate(scores)]

    report = build_standings(users, [])

    assert [s.current_score for s in report.top_scorers] == [100, 99, 98, 96, 95]
    # below 95 are 94.5, 90, 80, 70, 60, 50; the last five of them
    assert [s.current_score for s in report.low_scorers] == [90, 80, 70, 60, 50]
