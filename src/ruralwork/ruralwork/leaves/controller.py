from __future__ import annotations

from datetime import date

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import capability_required, current_role, current_user_id, json_body, login_required, ok
from ..core.enums import Capability, LeaveType, RequestStatus
from ..core.exceptions import ValidationError
from ..container import Container


def _parse_date(value) -> date:
    try:
        return parse_iso_date(str(value or ""))
    except ValueError:
        raise ValidationError("日期格式应为 YYYY-MM-DD")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/leaves", methods=["POST"], endpoint="new_leave")
    @login_required
    def new_leave():
        body = json_body()
        try:
            leave_type = LeaveType(body.get("leave_type") or "")
        except ValueError:
            raise ValidationError("请选择请假类型")
        request_id = container.leave_service.create_leave(
            current_role=current_role(),
            user_id=current_user_id(),
            leave_type=leave_type,
            start_date=_parse_date(body.get("start_date")),
            end_date=_parse_date(body.get("end_date")),
            reason=body.get("reason", ""),
            days_count=body.get("days_count"),
        )
        return ok({"id": request_id}, status=201)

    @app.route("/api/leaves/mine", methods=["GET"], endpoint="my_leaves")
    @login_required
    def my_leaves():
        return ok(container.leave_service.list_my_requests(user_id=current_user_id()))

    @app.route("/api/leaves", methods=["GET"], endpoint="admin_leaves")
    @capability_required(Capability.DECIDE_LEAVE)
    def admin_leaves():
        raw = request.args.get("status")
        try:
            status = RequestStatus(raw) if raw else None
        except ValueError:
            raise ValidationError("状态无效")
        return ok(container.leave_service.list_requests(current_role=current_role(), status=status))

    @app.route("/api/leaves/statistics", methods=["GET"], endpoint="leave_statistics")
    @capability_required(Capability.DECIDE_LEAVE)
    def leave_statistics():
        return ok(container.leave_service.leave_statistics(current_role=current_role()))

    @app.route("/api/leaves/<request_id>/preview", methods=["GET"], endpoint="preview_leave")
    @capability_required(Capability.DECIDE_LEAVE)
    def preview_leave(request_id: str):
        current, after = container.leave_service.preview_score(request_id=request_id)
        return ok({"current_score": current, "score_after": after})

    @app.route("/api/leaves/<request_id>/approve", methods=["POST"], endpoint="approve_leave")
    @capability_required(Capability.DECIDE_LEAVE)
    def approve_leave(request_id: str):
        decision = container.leave_service.approve_leave(
            current_role=current_role(),
            approver_id=current_user_id(),
            request_id=request_id,
            comment=json_body().get("comment", ""),
        )
        return ok(decision)

    @app.route("/api/leaves/<request_id>/reject", methods=["POST"], endpoint="reject_leave")
    @capability_required(Capability.DECIDE_LEAVE)
    def reject_leave(request_id: str):
        leave = container.leave_service.reject_leave(
            current_role=current_role(),
            approver_id=current_user_id(),
            request_id=request_id,
            comment=json_body().get("comment", ""),
        )
        return ok(leave)
