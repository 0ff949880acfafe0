"""Flask helpers shared by the feature controllers: session auth, JSON payloads, error mapping."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from functools import wraps
from typing import Optional

from flask import Flask, jsonify, request, session

from .datetime_utils import as_datetime
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import Capability, Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    StatisticsUnavailableError,
    ValidationError,
)
from ..core.permissions import has_capability

logger = logging.getLogger(__name__)

# most specific first
ERROR_STATUS = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (StatisticsUnavailableError, 503),
)


def status_for(error: DomainError) -> int:
    for cls, status in ERROR_STATUS:
        if isinstance(error, cls):
            return status
    return 500


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, e)
            message = str(e) if isinstance(e, StatisticsUnavailableError) else "系统错误，请稍后再试"
        else:
            message = str(e)
        return jsonify({"success": False, "message": message}), status


def to_json(value):
    if dataclasses.is_dataclass(value):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    return value


def ok(data=None, status: int = 200, **extra):
    return jsonify({"success": True, "data": to_json(data), **extra}), status


def current_user_id() -> str:
    return str(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role"))


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def parse_datetime(value) -> Optional[datetime]:
    """ISO timestamp from a JSON body as naive local time; blank means unset."""

    if value in (None, ""):
        return None
    try:
        parsed = as_datetime(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError("时间格式无效")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def page_args() -> tuple[int, int]:
    """(page, page_size) from the query string; page_size is capped at MAX_PAGE_SIZE."""

    try:
        page = int(request.args.get("page", 1))
        page_size = int(request.args.get("page_size", DEFAULT_PAGE_SIZE))
    except ValueError:
        raise ValidationError("分页参数无效")
    return max(page, 1), min(max(page_size, 1), MAX_PAGE_SIZE)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "请先登录"}), 401
        return view(*args, **kwargs)

    return wrapper


def capability_required(capability: Capability):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "请先登录"}), 401
            if not has_capability(current_role(), capability):
                return jsonify({"success": False, "message": "您没有权限执行此操作"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator
