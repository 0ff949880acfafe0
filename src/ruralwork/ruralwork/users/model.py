from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_TOTAL_SCORE
from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a township account.

    Note: plain data object, no store access. ``total_score`` is the attendance
    standing and only changes through the score ledger.
    """

    id: str
    name: str
    role: Role
    department: Optional[str] = None
    position: Optional[str] = None
    phone: Optional[str] = None
    total_score: float = DEFAULT_TOTAL_SCORE
    is_active: bool = True
    password_hash: str = ""
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
