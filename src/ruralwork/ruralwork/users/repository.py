from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """User directory.

    Note: services depend on this interface, never on a concrete store.
    """

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_phone(self, phone: str) -> Optional[User]:
        raise NotImplementedError

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
        raise NotImplementedError

    def set_active(self, user_id: str, *, is_active: bool) -> bool:
        raise NotImplementedError
