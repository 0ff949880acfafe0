from __future__ import annotations

from flask import Flask, request

from ..common.web import (
    capability_required,
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    parse_datetime,
)
from ..core.enums import ActivityStatus, Capability
from ..core.exceptions import ValidationError
from ..container import Container


def _status_arg(value) -> ActivityStatus:
    try:
        return ActivityStatus(value or "")
    except ValueError:
        raise ValidationError("状态无效")


def _activity_form(body: dict) -> dict:
    return {
        "title": body.get("title", ""),
        "description": body.get("description", ""),
        "start_time": parse_datetime(body.get("start_time")),
        "end_time": parse_datetime(body.get("end_time")),
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/team-activities", methods=["GET"], endpoint="list_team_activities")
    @login_required
    def list_team_activities():
        status = request.args.get("status")
        return ok(container.team_service.list_activities(status=_status_arg(status) if status else None))

    @app.route("/api/team-activities", methods=["POST"], endpoint="create_team_activity")
    @capability_required(Capability.MANAGE_TEAM_ACTIVITIES)
    def create_team_activity():
        activity_id = container.team_service.create_activity(
            current_role=current_role(), creator_id=current_user_id(), **_activity_form(json_body())
        )
        return ok({"id": activity_id}, status=201)

    @app.route("/api/team-activities/<activity_id>", methods=["PUT"], endpoint="update_team_activity")
    @capability_required(Capability.MANAGE_TEAM_ACTIVITIES)
    def update_team_activity(activity_id: str):
        activity = container.team_service.update_activity(
            current_role=current_role(),
            user_id=current_user_id(),
            activity_id=activity_id,
            **_activity_form(json_body()),
        )
        return ok(activity)

    @app.route("/api/team-activities/<activity_id>/status", methods=["POST"], endpoint="set_team_activity_status")
    @capability_required(Capability.MANAGE_TEAM_ACTIVITIES)
    def set_team_activity_status(activity_id: str):
        activity = container.team_service.set_activity_status(
            current_role=current_role(),
            user_id=current_user_id(),
            activity_id=activity_id,
            status=_status_arg(json_body().get("status")),
        )
        return ok(activity)

    @app.route("/api/team-evaluations", methods=["POST"], endpoint="submit_team_evaluation")
    @capability_required(Capability.TEAM_EVALUATE)
    def submit_team_evaluation():
        body = json_body()
        evaluation_id = container.team_service.submit(
            current_role=current_role(),
            evaluator_id=current_user_id(),
            activity_id=str(body.get("activity_id", "")),
            team_id=str(body.get("team_id", "")),
            scores=body.get("scores") or {},
            comment=body.get("comment", ""),
        )
        return ok({"id": evaluation_id}, status=201)

    @app.route("/api/team-evaluations/summary", methods=["GET"], endpoint="team_summary")
    @capability_required(Capability.VIEW_STATISTICS)
    def team_summary():
        summaries, average = container.team_service.summary(
            current_role=current_role(), activity_id=request.args.get("activity_id")
        )
        return ok(summaries, average_score=average)
