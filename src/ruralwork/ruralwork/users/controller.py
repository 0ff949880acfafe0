from __future__ import annotations

from flask import Flask, session

from ..common.web import capability_required, current_role, current_user_id, json_body, login_required, ok
from ..core.enums import Capability, Role
from ..core.exceptions import ValidationError
from ..container import Container


def _public(user) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "role": user.role.value,
        "role_label": user.role.label,
        "department": user.department,
        "position": user.position,
        "phone": user.phone,
        "total_score": user.total_score,
        "is_active": user.is_active,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        body = json_body()
        user = container.auth_service.authenticate(body.get("phone", ""), body.get("password", ""))
        session.clear()
        session["user_id"] = user.user_id
        session["name"] = user.name
        session["role"] = user.role.value
        session["department"] = user.department
        return ok(user)

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        user = container.users_repo.get_by_id(current_user_id())
        if not user:
            session.clear()
            raise ValidationError("用户不存在")
        return ok(_public(user))

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @capability_required(Capability.MANAGE_USERS)
    def list_users():
        users = container.user_service.list_users(current_role=current_role())
        return ok([_public(u) for u in users])

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @capability_required(Capability.MANAGE_USERS)
    def create_user():
        body = json_body()
        try:
            role = Role(body.get("role") or Role.TOWN_STAFF.value)
        except ValueError:
            raise ValidationError("角色无效")
        user_id = container.user_service.create_account(
            current_role=current_role(),
            current_user_id=current_user_id(),
            name=body.get("name", ""),
            phone=body.get("phone", ""),
            password=body.get("password", ""),
            role=role,
            department=body.get("department", ""),
            position=body.get("position", ""),
        )
        return ok({"id": user_id}, status=201)

    @app.route("/api/users/<user_id>/active", methods=["POST"], endpoint="set_user_active")
    @capability_required(Capability.MANAGE_USERS)
    def set_user_active(user_id: str):
        container.user_service.set_active(
            current_role=current_role(),
            user_id=user_id,
            is_active=bool(json_body().get("is_active", True)),
        )
        return ok()
