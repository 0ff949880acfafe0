from __future__ import annotations

from datetime import date

import pytest

from src.ruralwork.ruralwork.attendance.ledger import ScoreLedger
from src.ruralwork.ruralwork.common.audit import AuditLog
from src.ruralwork.ruralwork.core.enums import LeaveType, RequestStatus, Role
from src.ruralwork.ruralwork.core.exceptions import AuthorizationError, ValidationError
from src.ruralwork.ruralwork.leaves.service import LeaveService, summarize_leaves
from src.ruralwork.ruralwork.leaves.store_leave_repository import StoreLeaveRepository
from src.ruralwork.ruralwork.store.repository import Collection
from src.ruralwork.ruralwork.users.store_user_repository import StoreUserRepository


@pytest.fixture
def service(store, score_repo):
    return LeaveService(
        StoreLeaveRepository(store),
        StoreUserRepository(store),
        ScoreLedger(score_repo),
        audit=AuditLog(store),
    )


@pytest.fixture
def staff(store):
    return store.add_user("张三")


def new_leave(service, user_id, *, leave_type=LeaveType.PERSONAL, days=2.0) -> str:
    return service.create_leave(
        current_role=Role.TOWN_STAFF,
        user_id=user_id,
        leave_type=leave_type,
        start_date=date(2026, 5, 6),
        end_date=date(2026, 5, 7),
        reason="家中有事",
        days_count=days,
    )


def score_of(store, user_id) -> float:
    return store.tables[Collection.USERS][user_id]["total_score"]


def test_approving_personal_leave_deducts_days(service, store, staff, fixed_now):
    request_id = new_leave(service, staff, days=2)

    decision = service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=request_id, now=fixed_now)

    assert decision.request.status == RequestStatus.APPROVED
    assert decision.request.score_deduction == 2
    assert decision.adjustment.score_after == 98
    assert score_of(store, staff) == 98
    assert store.tables[Collection.LEAVE_REQUESTS][request_id]["approved_at"] == fixed_now


def test_two_approvals_accumulate(service, store, staff):
    first = new_leave(service, staff, days=1)
    second = new_leave(service, staff, days=2)

    service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=first)
    service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=second)

    assert score_of(store, staff) == 97


def test_retried_approval_does_not_double_deduct(service, store, staff):
    request_id = new_leave(service, staff, days=3)

    service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=request_id)
    again = service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=request_id)

    assert again.adjustment.replayed
    assert score_of(store, staff) == 97


def test_reapproval_repairs_missing_deduction(service, store, staff):
    # status flipped but the deduction never landed (e.g. crash between the two steps)
    request_id = new_leave(service, staff, days=4)
    store.update(Collection.LEAVE_REQUESTS, request_id, {"status": RequestStatus.APPROVED.value})

    decision = service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=request_id)

    assert not decision.adjustment.replayed
    assert decision.request.score_deduction == 4
    assert score_of(store, staff) == 96


def test_non_personal_leave_costs_nothing(service, store, staff):
    request_id = new_leave(service, staff, leave_type=LeaveType.SICK, days=5)

    decision = service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=request_id)

    assert decision.adjustment is None
    assert decision.request.score_deduction is None
    assert score_of(store, staff) == 100


def test_rejected_leave_cannot_be_approved(service, store, staff):
    request_id = new_leave(service, staff)
    service.reject_leave(current_role=Role.ADMIN, approver_id="admin", request_id=request_id, comment="材料不全")

    with pytest.raises(ValidationError):
        service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=request_id)
    assert score_of(store, staff) == 100


def test_decided_leave_cannot_be_rejected(service, staff):
    request_id = new_leave(service, staff)
    service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=request_id)

    with pytest.raises(ValidationError):
        service.reject_leave(current_role=Role.ADMIN, approver_id="admin", request_id=request_id)


def test_only_admins_decide(service, staff):
    request_id = new_leave(service, staff)

    with pytest.raises(AuthorizationError):
        service.approve_leave(current_role=Role.TOWN_STAFF, approver_id=staff, request_id=request_id)


def test_unknown_request(service):
    with pytest.raises(ValidationError):
        service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id="nope")


@pytest.mark.parametrize(
    "start, end, days",
    [
        (date(2026, 5, 7), date(2026, 5, 6), 1),
        (date(2026, 5, 6), date(2026, 5, 7), 0),
        (date(2026, 5, 6), date(2026, 5, 7), -1),
    ],
)
def test_create_validation(service, staff, start, end, days):
    with pytest.raises(ValidationError):
        service.create_leave(
            current_role=Role.TOWN_STAFF,
            user_id=staff,
            leave_type=LeaveType.PERSONAL,
            start_date=start,
            end_date=end,
            reason="事假",
            days_count=days,
        )


def test_days_default_from_dates(service, store, staff):
    request_id = service.create_leave(
        current_role=Role.TOWN_STAFF,
        user_id=staff,
        leave_type=LeaveType.ANNUAL,
        start_date=date(2026, 5, 6),
        end_date=date(2026, 5, 6),
        reason="年假",
    )

    assert store.tables[Collection.LEAVE_REQUESTS][request_id]["days_count"] == 1


def test_preview_score(service, staff):
    request_id = new_leave(service, staff, days=2.5)

    assert service.preview_score(request_id=request_id) == (100, 97.5)


def test_leave_statistics(service, staff):
    approved = new_leave(service, staff, days=2)
    rejected = new_leave(service, staff, leave_type=LeaveType.SICK, days=1)
    new_leave(service, staff, days=1)
    service.approve_leave(current_role=Role.ADMIN, approver_id="admin", request_id=approved)
    service.reject_leave(current_role=Role.ADMIN, approver_id="admin", request_id=rejected)

    stats = service.leave_statistics(current_role=Role.ADMIN)

    assert (stats.total, stats.pending, stats.approved, stats.rejected) == (3, 1, 1, 1)
    assert stats.approved_days == 2
    assert stats.by_type == {"personal": 2, "sick": 1, "annual": 0, "other": 0}


def test_summarize_empty():
    stats = summarize_leaves([])

    assert stats.total == 0
    assert stats.approved_days == 0
