from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.audit import AuditLog
from ..common.validators import require_min_length, require_non_empty, require_phone
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Capability, Role
from ..core.exceptions import AuthenticationError, ValidationError
from ..core.permissions import require_capability
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: str
    name: str
    role: Role
    department: Optional[str]


class AuthService:
    """Use case: authenticate user (login by phone + password)."""

    def __init__(self, users: UserRepository, *, audit: Optional[AuditLog] = None):
        self._users = users
        self._audit = audit

    def authenticate(self, phone: str, password: str) -> SessionUser:
        user = self._users.get_by_phone((phone or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("手机号或密码错误")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("手机号或密码错误")

        if self._audit:
            self._audit.record(user.id, "login", "auth", {"phone": user.phone})

        return SessionUser(user_id=user.id, name=user.name, role=user.role, department=user.department)


class UserService:
    """Use case: manage accounts (admin)."""

    def __init__(self, users: UserRepository, *, audit: Optional[AuditLog] = None):
        self._users = users
        self._audit = audit

    def create_account(
        self,
        *,
        current_role: Role,
        current_user_id: Optional[str] = None,
        name: str,
        phone: str,
        password: str,
        role: Role,
        department: str = "",
        position: str = "",
    ) -> str:
        require_capability(current_role, Capability.MANAGE_USERS)

        name = require_non_empty(name, "姓名")
        phone = require_phone(phone)
        require_min_length(password, "密码", MIN_PASSWORD_LENGTH)

        if self._users.get_by_phone(phone):
            raise ValidationError("手机号已存在")

        user_id = self._users.create_user(
            name=name,
            phone=phone,
            password_hash=generate_password_hash(password),
            role=role,
            department=(department or "").strip() or None,
            position=(position or "").strip() or None,
        )
        logger.info("account created id=%s role=%s", user_id, role.value)
        if self._audit:
            self._audit.record(
                current_user_id or user_id,
                "create_user",
                "users",
                {"new_user_id": user_id, "phone": phone, "name": name, "role": role.value},
            )
        return user_id

    def list_users(self, *, current_role: Role) -> Sequence[User]:
        require_capability(current_role, Capability.MANAGE_USERS)
        return self._users.list_all()

    def set_active(self, *, current_role: Role, user_id: str, is_active: bool) -> None:
        require_capability(current_role, Capability.MANAGE_USERS)

        user = self._users.get_by_id(user_id)
        if not user:
            raise ValidationError("用户不存在")
        if user.is_admin and not is_active:
            raise ValidationError("不能停用管理员账号")

        if not self._users.set_active(user_id, is_active=is_active):
            raise ValidationError("更新用户状态失败")
