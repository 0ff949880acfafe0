from __future__ import annotations

import json
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .repository import Collection, OrderBy, Pagination, RecordStore

# Column whitelist per collection; identifiers are never taken from user input unchecked.
COLUMNS: Mapping[Collection, tuple[str, ...]] = {
    Collection.USERS: (
        "id", "phone", "password_hash", "name", "role", "department", "position",
        "total_score", "is_active", "created_at", "updated_at",
    ),
    Collection.EVALUATIONS: (
        "id", "evaluator_id", "evaluatee_id", "evaluation_year", "evaluation_period",
        "score_de", "score_neng", "score_qin", "score_ji", "score_lian", "total_score",
        "comment", "is_completed", "created_at", "updated_at",
    ),
    Collection.VOTES: (
        "id", "title", "description", "status", "max_votes_per_user", "show_results",
        "candidates", "start_time", "end_time", "created_by", "created_at", "updated_at",
    ),
    Collection.VOTE_RECORDS: ("id", "vote_id", "voter_id", "candidates", "vote_time"),
    Collection.LEAVE_REQUESTS: (
        "id", "user_id", "leave_type", "start_date", "end_date", "days_count", "reason",
        "status", "score_deduction", "approver_id", "approver_comment", "approved_at",
        "created_at", "updated_at",
    ),
    Collection.TEAM_EVALUATIONS: (
        "id", "activity_id", "evaluator_id", "team_id", "work_quality_score",
        "cooperation_score", "efficiency_score", "innovation_score",
        "service_attitude_score", "total_score", "comment", "created_at",
    ),
    Collection.SCORE_ADJUSTMENTS: (
        "id", "idempotency_key", "user_id", "amount", "reason", "score_before",
        "score_after", "created_at",
    ),
    Collection.TEAM_ACTIVITIES: (
        "id", "title", "description", "status", "start_time", "end_time", "created_by",
        "created_at", "updated_at",
    ),
    Collection.SYSTEM_LOGS: ("id", "user_id", "action", "resource", "metadata", "created_at"),
}

JSON_COLUMNS: Mapping[Collection, frozenset[str]] = {
    Collection.VOTES: frozenset({"candidates"}),
    Collection.VOTE_RECORDS: frozenset({"candidates"}),
    Collection.SYSTEM_LOGS: frozenset({"metadata"}),
}

BOOL_COLUMNS = frozenset({"is_active", "is_completed", "show_results"})


def _check_columns(collection: Collection, names) -> None:
    allowed = COLUMNS[collection]
    unknown = [n for n in names if n not in allowed]
    if unknown:
        raise ValidationError(f"未知字段: {collection.value}.{', '.join(unknown)}")


class MySQLRecordStore(RecordStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- value conversion --------
    @staticmethod
    def _to_db(collection: Collection, column: str, value: Any) -> Any:
        if column in JSON_COLUMNS.get(collection, ()):
            return json.dumps(value, ensure_ascii=False)
        if isinstance(value, Enum):
            return value.value
        return value

    @staticmethod
    def _from_db(collection: Collection, row: dict) -> dict:
        out: dict = {}
        json_cols = JSON_COLUMNS.get(collection, ())
        for k, v in row.items():
            if k in json_cols and isinstance(v, (str, bytes, bytearray)):
                v = json.loads(v)
            elif k in BOOL_COLUMNS and v is not None:
                v = bool(v)
            elif isinstance(v, Decimal):
                v = float(v)
            out[k] = v
        return out

    # -------- RecordStore --------
    def fetch(
        self,
        collection: Collection,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        pagination: Optional[Pagination] = None,
    ) -> list[dict]:
        filters = dict(filters or {})
        _check_columns(collection, filters.keys())

        clauses = ["1=1"]
        params: list[object] = []
        for column, value in filters.items():
            if value is None:
                clauses.append(f"`{column}` IS NULL")
            else:
                clauses.append(f"`{column}`=%s")
                params.append(self._to_db(collection, column, value))

        sql = f"SELECT * FROM `{collection.value}` WHERE {' AND '.join(clauses)}"
        if order_by is not None:
            _check_columns(collection, [order_by.column])
            sql += f" ORDER BY `{order_by.column}` {'ASC' if order_by.ascending else 'DESC'}"
        if pagination is not None:
            sql += " LIMIT %s OFFSET %s"
            params.extend([int(pagination.page_size), int(pagination.offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._from_db(collection, r) for r in fetchall(cur)]

    def insert(self, collection: Collection, record: Mapping[str, Any]) -> dict:
        data = dict(record)
        data.setdefault("id", str(uuid.uuid4()))
        if "created_at" in COLUMNS[collection]:
            data.setdefault("created_at", datetime.now())
        _check_columns(collection, data.keys())

        columns = list(data.keys())
        placeholders = ",".join(["%s"] * len(columns))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO `{collection.value}`({','.join(f'`{c}`' for c in columns)}) VALUES({placeholders})",
                tuple(self._to_db(collection, c, data[c]) for c in columns),
            )
            cur.execute(f"SELECT * FROM `{collection.value}` WHERE id=%s", (data["id"],))
            return self._from_db(collection, fetchone(cur) or data)

    def update(
        self,
        collection: Collection,
        record_id: str,
        fields: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Optional[dict]:
        data = dict(fields)
        if "updated_at" in COLUMNS[collection]:
            data.setdefault("updated_at", datetime.now())
        expected = dict(expected or {})
        _check_columns(collection, list(data.keys()) + list(expected.keys()))
        if not data:
            raise ValidationError("没有需要更新的字段")

        assignments = ", ".join(f"`{c}`=%s" for c in data)
        params: list[object] = [self._to_db(collection, c, v) for c, v in data.items()]
        where = ["id=%s"]
        params.append(record_id)
        for column, value in expected.items():
            where.append(f"`{column}`=%s")
            params.append(self._to_db(collection, column, value))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE `{collection.value}` SET {assignments} WHERE {' AND '.join(where)}",
                tuple(params),
            )
            if cur.rowcount == 0:
                # MySQL reports 0 rows for no-op updates too; re-check the preconditions.
                cur.execute(f"SELECT * FROM `{collection.value}` WHERE id=%s", (record_id,))
                row = fetchone(cur)
                if not row or any(row.get(c) != self._to_db(collection, c, v) for c, v in expected.items()):
                    return None
                return self._from_db(collection, row)
            cur.execute(f"SELECT * FROM `{collection.value}` WHERE id=%s", (record_id,))
            row = fetchone(cur)
            return self._from_db(collection, row) if row else None
