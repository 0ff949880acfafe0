from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import as_date, as_datetime
from ..common.numbers import as_float
from ..core.enums import LeaveType, RequestStatus
from ..store.repository import Collection, OrderBy, RecordStore
from .model import LeaveRequest
from .repository import LeaveRepository


def leave_from_row(row: dict) -> LeaveRequest:
    deduction = row.get("score_deduction")
    return LeaveRequest(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        leave_type=LeaveType(row.get("leave_type") or LeaveType.OTHER.value),
        start_date=as_date(row.get("start_date")),
        end_date=as_date(row.get("end_date")),
        days_count=as_float(row.get("days_count"), default=1.0),
        reason=row.get("reason") or "",
        status=RequestStatus(row.get("status") or RequestStatus.PENDING.value),
        score_deduction=None if deduction is None else as_float(deduction),
        approver_id=row.get("approver_id"),
        approver_comment=row.get("approver_comment"),
        approved_at=as_datetime(row.get("approved_at")),
        created_at=as_datetime(row.get("created_at")),
    )


class StoreLeaveRepository(LeaveRepository):
    def __init__(self, store: RecordStore):
        self._store = store

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
        row = self._store.insert(
            Collection.LEAVE_REQUESTS,
            {
                "user_id": user_id,
                "leave_type": leave_type.value,
                "start_date": start_date,
                "end_date": end_date,
                "days_count": days_count,
                "reason": reason,
                "status": RequestStatus.PENDING.value,
            },
        )
        return str(row["id"])

    def get(self, request_id: str) -> Optional[LeaveRequest]:
        rows = self._store.fetch(Collection.LEAVE_REQUESTS, filters={"id": request_id})
        return leave_from_row(rows[0]) if rows else None

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[str] = None,
    ) -> Sequence[LeaveRequest]:
        filters: dict = {}
        if status is not None:
            filters["status"] = status.value
        if user_id is not None:
            filters["user_id"] = user_id
        rows = self._store.fetch(
            Collection.LEAVE_REQUESTS,
            filters=filters,
            order_by=OrderBy("created_at", ascending=False),
        )
        return [leave_from_row(r) for r in rows]

    def decide(
        self,
        *,
        request_id: str,
        status: RequestStatus,
        approver_id: str,
        comment: Optional[str],
        decided_at: datetime,
    ) -> Optional[LeaveRequest]:
        row = self._store.update(
            Collection.LEAVE_REQUESTS,
            request_id,
            {
                "status": status.value,
                "approver_id": approver_id,
                "approver_comment": comment,
                "approved_at": decided_at,
            },
            expected={"status": RequestStatus.PENDING.value},
        )
        return leave_from_row(row) if row else None

    def set_score_deduction(self, request_id: str, amount: float) -> bool:
        row = self._store.update(Collection.LEAVE_REQUESTS, request_id, {"score_deduction": amount})
        return row is not None
