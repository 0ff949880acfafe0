from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from ..common.numbers import as_float
from ..core.exceptions import MissingReferenceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .calculator.personal_leave import deduct
from .model import ApplyDeduction, ScoreAdjustment
from .repository import ScoreRepository


def _adjustment_from_row(row: dict) -> ScoreAdjustment:
    return ScoreAdjustment(
        idempotency_key=row["idempotency_key"],
        user_id=str(row["user_id"]),
        amount=as_float(row["amount"]),
        reason=row.get("reason") or "",
        score_before=as_float(row["score_before"]),
        score_after=as_float(row["score_after"]),
    )


class MySQLScoreRepository(ScoreRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_adjustment(self, idempotency_key: str) -> Optional[ScoreAdjustment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT idempotency_key, user_id, amount, reason, score_before, score_after
                FROM score_adjustments
                WHERE idempotency_key=%s
                """,
                (idempotency_key,),
            )
            row = fetchone(cur)
            return _adjustment_from_row(row) if row else None

    def apply_adjustment(self, command: ApplyDeduction, *, floor: float) -> ScoreAdjustment:
        with db_cursor(self._conn_factory) as (_, cur):
            # row lock: concurrent adjustments for this user queue up here
            cur.execute("SELECT total_score FROM users WHERE id=%s FOR UPDATE", (command.user_id,))
            row = fetchone(cur)
            if not row:
                raise MissingReferenceError(f"用户 {command.user_id} 不存在")

            before = as_float(row["total_score"])
            after = deduct(before, command.amount, floor=floor)

            cur.execute(
                "UPDATE users SET total_score=%s, updated_at=%s WHERE id=%s",
                (after, datetime.now(), command.user_id),
            )
            # unique key on idempotency_key; a duplicate rolls the whole transaction back
            cur.execute(
                """
                INSERT INTO score_adjustments(
                    id, idempotency_key, user_id, amount, reason, score_before, score_after, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    str(uuid.uuid4()),
                    command.idempotency_key,
                    command.user_id,
                    command.amount,
                    command.reason,
                    before,
                    after,
                    datetime.now(),
                ),
            )
            return ScoreAdjustment(
                idempotency_key=command.idempotency_key,
                user_id=command.user_id,
                amount=command.amount,
                reason=command.reason,
                score_before=before,
                score_after=after,
            )
