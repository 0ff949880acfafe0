from __future__ import annotations

from flask import Flask

from ..common.web import current_role, current_user_id, json_body, login_required, ok
from ..container import Container
from .model import EvaluationRecord


def _record_json(record: EvaluationRecord) -> dict:
    return {
        "id": record.id,
        "evaluatee_id": record.evaluatee_id,
        "evaluation_year": record.evaluation_year,
        "scores": dict(record.scores),
        "total_score": record.total_score,
        "comment": record.comment,
        "state": record.state.value,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/evaluations/targets", methods=["GET"], endpoint="evaluation_targets")
    @login_required
    def evaluation_targets():
        service = container.evaluation_service
        targets = service.list_targets(current_user_id=current_user_id())
        return ok(targets, evaluation_year=service.current_year())

    @app.route("/api/evaluations", methods=["POST"], endpoint="save_evaluation")
    @login_required
    def save_evaluation():
        body = json_body()
        record = container.evaluation_service.save(
            current_role=current_role(),
            evaluator_id=current_user_id(),
            evaluatee_id=str(body.get("evaluatee_id", "")),
            scores=body.get("scores") or {},
            comment=body.get("comment", ""),
            submit=bool(body.get("submit", False)),
        )
        return ok(_record_json(record))
