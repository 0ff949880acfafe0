from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import as_datetime
from ..common.numbers import as_float
from ..core.constants import DEFAULT_TOTAL_SCORE
from ..core.enums import Role
from ..store.repository import Collection, OrderBy, RecordStore
from .model import User
from .repository import UserRepository


def user_from_row(row: dict) -> User:
    return User(
        id=str(row["id"]),
        name=row.get("name") or "",
        role=Role(row["role"]),
        department=row.get("department"),
        position=row.get("position"),
        phone=row.get("phone"),
        total_score=as_float(row.get("total_score"), default=DEFAULT_TOTAL_SCORE),
        is_active=bool(row.get("is_active", True)),
        password_hash=row.get("password_hash") or "",
        created_at=as_datetime(row.get("created_at")),
    )


class StoreUserRepository(UserRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    def list_all(self) -> Sequence[User]:
        rows = self._store.fetch(Collection.USERS, order_by=OrderBy("created_at", ascending=False))
        return [user_from_row(r) for r in rows]

    def get_by_id(self, user_id: str) -> Optional[User]:
        rows = self._store.fetch(Collection.USERS, filters={"id": user_id})
        return user_from_row(rows[0]) if rows else None

    def get_by_phone(self, phone: str) -> Optional[User]:
        rows = self._store.fetch(Collection.USERS, filters={"phone": phone})
        return user_from_row(rows[0]) if rows else None

    def create_user(
        self,
        *,
        name: str,
        phone: str,
        password_hash: str,
        role: Role,
        department: Optional[str],
        position: Optional[str],
    ) -> str:
        row = self._store.insert(
            Collection.USERS,
            {
                "name": name,
                "phone": phone,
                "password_hash": password_hash,
                "role": role.value,
                "department": department,
                "position": position,
                "total_score": DEFAULT_TOTAL_SCORE,
                "is_active": True,
            },
        )
        return str(row["id"])

    def set_active(self, user_id: str, *, is_active: bool) -> bool:
        return self._store.update(Collection.USERS, user_id, {"is_active": bool(is_active)}) is not None
