from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveType, RequestStatus
from .model import LeaveRequest


class LeaveRepository(Protocol):
    def create_leave(
        self,
        *,
        user_id: str,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days_count: float,
        reason: str,
    ) -> str:
        raise NotImplementedError

    def get(self, request_id: str) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[str] = None,
    ) -> Sequence[LeaveRequest]:
        """Newest first."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: str,
        status: RequestStatus,
        approver_id: str,
        comment: Optional[str],
        decided_at: datetime,
    ) -> Optional[LeaveRequest]:
        """Move a PENDING request to ``status``.

        Compare-and-swap: returns None when the request is missing or no longer pending.
        """

        raise NotImplementedError

    def set_score_deduction(self, request_id: str, amount: float) -> bool:
        raise NotImplementedError
