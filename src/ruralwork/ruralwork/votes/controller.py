from __future__ import annotations

from flask import Flask

from ..common.web import (
    capability_required,
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    parse_datetime,
)
from ..core.enums import Capability, VoteStatus
from ..core.exceptions import ValidationError
from ..container import Container


def _vote_form(body: dict) -> dict:
    return {
        "title": body.get("title", ""),
        "candidate_ids": body.get("candidates") or [],
        "max_votes_per_user": body.get("max_votes_per_user", 1),
        "show_results": bool(body.get("show_results", False)),
        "description": body.get("description", ""),
        "start_time": parse_datetime(body.get("start_time")),
        "end_time": parse_datetime(body.get("end_time")),
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/votes", methods=["GET"], endpoint="list_votes")
    @login_required
    def list_votes():
        return ok(container.vote_service.list_votes(current_role=current_role()))

    @app.route("/api/votes", methods=["POST"], endpoint="create_vote")
    @capability_required(Capability.MANAGE_VOTES)
    def create_vote():
        vote_id = container.vote_service.create_vote(
            current_role=current_role(), creator_id=current_user_id(), **_vote_form(json_body())
        )
        return ok({"id": vote_id}, status=201)

    @app.route("/api/votes/<vote_id>", methods=["PUT"], endpoint="update_vote")
    @capability_required(Capability.MANAGE_VOTES)
    def update_vote(vote_id: str):
        vote = container.vote_service.update_vote(
            current_role=current_role(), user_id=current_user_id(), vote_id=vote_id, **_vote_form(json_body())
        )
        return ok(vote)

    @app.route("/api/votes/<vote_id>/status", methods=["POST"], endpoint="set_vote_status")
    @capability_required(Capability.MANAGE_VOTES)
    def set_vote_status(vote_id: str):
        try:
            status = VoteStatus(json_body().get("status") or "")
        except ValueError:
            raise ValidationError("状态无效")
        vote = container.vote_service.set_status(
            current_role=current_role(), user_id=current_user_id(), vote_id=vote_id, status=status
        )
        return ok(vote)

    @app.route("/api/votes/<vote_id>/ballots", methods=["POST"], endpoint="cast_vote")
    @login_required
    def cast_vote(vote_id: str):
        record_id = container.vote_service.cast(
            current_role=current_role(),
            voter_id=current_user_id(),
            vote_id=vote_id,
            candidate_ids=json_body().get("candidates") or [],
        )
        return ok({"id": record_id}, status=201)

    @app.route("/api/votes/<vote_id>/results", methods=["GET"], endpoint="vote_results")
    @login_required
    def vote_results(vote_id: str):
        result = container.vote_service.results(
            current_role=current_role(), user_id=current_user_id(), vote_id=vote_id
        )
        return ok(result)
