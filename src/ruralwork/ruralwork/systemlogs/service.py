from __future__ import annotations

import logging
from typing import Optional

from ..common.datetime_utils import as_datetime
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import Capability, Role
from ..core.exceptions import ValidationError
from ..core.permissions import require_capability
from ..store.repository import Collection, OrderBy, Pagination, RecordStore
from ..users.repository import UserRepository
from .model import SystemLogEntry, SystemLogPage

logger = logging.getLogger(__name__)


def log_entry_from_row(row: dict, users: dict) -> SystemLogEntry:
    user_id = row.get("user_id")
    user = users.get(str(user_id)) if user_id is not None else None
    return SystemLogEntry(
        id=str(row["id"]),
        action=row.get("action") or "",
        resource=row.get("resource") or "",
        user_id=None if user_id is None else str(user_id),
        user_name=user.name if user else None,
        user_phone=user.phone if user else None,
        metadata=dict(row.get("metadata") or {}),
        created_at=as_datetime(row.get("created_at")),
    )


class SystemLogService:
    """Read side of the audit trail written by ``AuditLog``; newest first."""

    def __init__(self, store: RecordStore, users: UserRepository):
        self._store = store
        self._users = users

    def list_logs(
        self,
        *,
        current_role: Role,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        resource: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> SystemLogPage:
        require_capability(current_role, Capability.VIEW_SYSTEM_LOGS)
        if page < 1 or not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError("分页参数无效")

        filters = {
            k: v.strip()
            for k, v in (("user_id", user_id), ("action", action), ("resource", resource))
            if v and v.strip()
        }
        total = len(self._store.fetch(Collection.SYSTEM_LOGS, filters=filters))
        rows = self._store.fetch(
            Collection.SYSTEM_LOGS,
            filters=filters,
            order_by=OrderBy("created_at", ascending=False),
            pagination=Pagination(page, page_size),
        )
        users = {u.id: u for u in self._users.list_all()}
        logger.debug("system logs page %d (%d of %d) filters=%s", page, len(rows), total, filters)
        return SystemLogPage(
            entries=[log_entry_from_row(r, users) for r in rows],
            total=total,
            page=page,
            page_size=page_size,
        )
