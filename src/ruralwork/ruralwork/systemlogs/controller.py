from __future__ import annotations

from flask import Flask, request

from ..common.web import capability_required, current_role, ok, page_args
from ..core.enums import Capability
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/system-logs", methods=["GET"], endpoint="system_logs")
    @capability_required(Capability.VIEW_SYSTEM_LOGS)
    def system_logs():
        page, page_size = page_args()
        result = container.system_log_service.list_logs(
            current_role=current_role(),
            user_id=request.args.get("user_id"),
            action=request.args.get("action"),
            resource=request.args.get("resource"),
            page=page,
            page_size=page_size,
        )
        return ok(result.entries, total=result.total, page=result.page, page_size=result.page_size)
