from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..attendance.calculator.personal_leave import PersonalLeaveDeductionPolicy, apply_leave_deduction
from ..attendance.ledger import ScoreLedger
from ..attendance.model import ApplyDeduction
from ..common.audit import AuditLog
from ..common.datetime_utils import now_local
from ..common.numbers import as_float
from ..common.validators import require_non_empty, require_positive
from ..core.constants import DEFAULT_TOTAL_SCORE
from ..core.enums import Capability, LeaveType, RequestStatus, Role
from ..core.exceptions import ValidationError
from ..core.permissions import require_capability
from ..users.repository import UserRepository
from .model import LeaveDecision, LeaveRequest, LeaveStats
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


def leave_idempotency_key(request_id: str) -> str:
    return f"leave:{request_id}"


def summarize_leaves(leaves: Iterable[LeaveRequest]) -> LeaveStats:
    leaves = list(leaves)
    by_status = Counter(leave.status for leave in leaves)
    by_type = Counter(leave.leave_type.value for leave in leaves)
    return LeaveStats(
        total=len(leaves),
        pending=by_status[RequestStatus.PENDING],
        approved=by_status[RequestStatus.APPROVED],
        rejected=by_status[RequestStatus.REJECTED],
        approved_days=sum(as_float(l.days_count) for l in leaves if l.status == RequestStatus.APPROVED),
        by_type={t.value: by_type.get(t.value, 0) for t in LeaveType},
    )


class LeaveService:
    """Leave workflow: submit, approve (with score deduction), reject.

    Approval is a compare-and-swap pending -> approved; the score change for
    personal leave then goes through the ledger keyed by ``leave:<id>``, so a
    retried approval never deducts twice.
    """

    def __init__(
        self,
        leaves: LeaveRepository,
        users: UserRepository,
        ledger: ScoreLedger,
        *,
        audit: Optional[AuditLog] = None,
        policy: Optional[PersonalLeaveDeductionPolicy] = None,
    ):
        self._leaves = leaves
        self._users = users
        self._ledger = ledger
        self._audit = audit
        self._policy = policy or PersonalLeaveDeductionPolicy()

    def create_leave(
        self,
        *,
        current_role: Role,
        user_id: str,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        days_count: Optional[float] = None,
    ) -> str:
        require_capability(current_role, Capability.REQUEST_LEAVE)

        if end_date < start_date:
            raise ValidationError("结束日期不能早于开始日期")
        if days_count is None:
            days_count = max(1, (end_date - start_date).days)
        days = require_positive(days_count, "请假天数")
        reason = require_non_empty(reason, "请假原因")

        request_id = self._leaves.create_leave(
            user_id=user_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days_count=days,
            reason=reason,
        )
        logger.info("leave request %s created user=%s type=%s days=%s", request_id, user_id, leave_type.value, days)
        return request_id

    def _get(self, request_id: str) -> LeaveRequest:
        leave = self._leaves.get(request_id)
        if not leave:
            raise ValidationError("请假申请不存在")
        return leave

    def _settle_deduction(self, leave: LeaveRequest) -> LeaveDecision:
        amount = self._policy.deduction_for(leave)
        if not amount:
            return LeaveDecision(request=leave)

        adjustment = self._ledger.apply(
            ApplyDeduction(
                user_id=leave.user_id,
                amount=amount,
                reason=f"私假扣分 {leave.start_date} ~ {leave.end_date}",
                idempotency_key=leave_idempotency_key(leave.id),
            )
        )
        if leave.score_deduction is None:
            self._leaves.set_score_deduction(leave.id, amount)
            leave = dataclasses.replace(leave, score_deduction=amount)
        return LeaveDecision(request=leave, adjustment=adjustment)

    def approve_leave(
        self,
        *,
        current_role: Role,
        approver_id: str,
        request_id: str,
        comment: str = "",
        now: Optional[datetime] = None,
    ) -> LeaveDecision:
        require_capability(current_role, Capability.DECIDE_LEAVE)

        leave = self._get(request_id)
        if leave.status == RequestStatus.PENDING:
            decided = self._leaves.decide(
                request_id=request_id,
                status=RequestStatus.APPROVED,
                approver_id=approver_id,
                comment=(comment or "").strip() or None,
                decided_at=now or now_local(),
            )
            # lost the race: somebody else decided first
            leave = decided or self._get(request_id)

        if leave.status != RequestStatus.APPROVED:
            raise ValidationError("该申请已被拒绝")

        decision = self._settle_deduction(leave)
        logger.info("leave request %s approved by %s", request_id, approver_id)
        if self._audit:
            self._audit.record(
                approver_id,
                "approve_leave",
                "leave_requests",
                {"request_id": request_id, "score_deduction": decision.request.score_deduction},
            )
        return decision

    def reject_leave(
        self,
        *,
        current_role: Role,
        approver_id: str,
        request_id: str,
        comment: str = "",
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        require_capability(current_role, Capability.DECIDE_LEAVE)

        decided = self._leaves.decide(
            request_id=request_id,
            status=RequestStatus.REJECTED,
            approver_id=approver_id,
            comment=(comment or "").strip() or None,
            decided_at=now or now_local(),
        )
        if not decided:
            self._get(request_id)
            raise ValidationError("该申请已处理")

        logger.info("leave request %s rejected by %s", request_id, approver_id)
        if self._audit:
            self._audit.record(approver_id, "reject_leave", "leave_requests", {"request_id": request_id})
        return decided

    def preview_score(self, *, request_id: str) -> tuple[float, float]:
        """(current score, score if this request were approved)."""

        leave = self._get(request_id)
        user = self._users.get_by_id(leave.user_id)
        current = user.total_score if user else DEFAULT_TOTAL_SCORE
        approved = dataclasses.replace(leave, status=RequestStatus.APPROVED)
        return current, apply_leave_deduction(current, [approved], policy=self._policy)

    def list_my_requests(self, *, user_id: str) -> Sequence[LeaveRequest]:
        return self._leaves.list_requests(user_id=user_id)

    def list_requests(self, *, current_role: Role, status: Optional[RequestStatus] = None) -> Sequence[LeaveRequest]:
        require_capability(current_role, Capability.DECIDE_LEAVE)
        return self._leaves.list_requests(status=status)

    def leave_statistics(self, *, current_role: Role) -> LeaveStats:
        require_capability(current_role, Capability.DECIDE_LEAVE)
        return summarize_leaves(self._leaves.list_requests())
