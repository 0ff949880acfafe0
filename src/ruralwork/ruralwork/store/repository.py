from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Protocol


class Collection(str, Enum):
    """Named collections exposed by the record store (one table each)."""

    USERS = "users"
    EVALUATIONS = "evaluations"
    VOTES = "votes"
    VOTE_RECORDS = "vote_records"
    LEAVE_REQUESTS = "leave_requests"
    TEAM_EVALUATIONS = "team_evaluations"
    TEAM_ACTIVITIES = "team_evaluation_activities"
    SCORE_ADJUSTMENTS = "score_adjustments"
    SYSTEM_LOGS = "system_logs"


@dataclass(frozen=True)
class OrderBy:
    column: str
    ascending: bool = False


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    page_size: int = 10

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.page_size


class RecordStore(Protocol):
    """Generic record store over named collections.

    Filtering is equality-only. Records are plain dicts keyed by column name,
    every record has an opaque string ``id``.
    """

    def fetch(
        self,
        collection: Collection,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        pagination: Optional[Pagination] = None,
    ) -> list[dict]:
        raise NotImplementedError

    def insert(self, collection: Collection, record: Mapping[str, Any]) -> dict:
        """Insert and return the stored record (with its generated ``id``).

        Raises DuplicateRecordError when a unique key is violated.
        """

        raise NotImplementedError

    def update(
        self,
        collection: Collection,
        record_id: str,
        fields: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Optional[dict]:
        """Apply ``fields`` and return the updated record.

        ``expected`` holds equality preconditions checked in the same statement;
        returns None when the record is missing or a precondition failed.
        """

        raise NotImplementedError
