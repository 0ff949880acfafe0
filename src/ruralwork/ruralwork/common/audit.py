from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..core.exceptions import DomainError
from ..store.repository import Collection, RecordStore

logger = logging.getLogger(__name__)


class AuditLog:
    """Writes user actions to ``system_logs``.

    A failed write is logged and dropped: the action being audited has already happened.
    """

    def __init__(self, store: RecordStore):
        self._store = store

    def record(
        self,
        user_id: Optional[str],
        action: str,
        resource: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        try:
            self._store.insert(
                Collection.SYSTEM_LOGS,
                {
                    "user_id": user_id,
                    "action": action,
                    "resource": resource,
                    "metadata": dict(metadata or {}),
                },
            )
        except DomainError:
            logger.warning("audit write failed: action=%s resource=%s user=%s", action, resource, user_id, exc_info=True)
