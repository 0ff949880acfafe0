from __future__ import annotations

import copy
import itertools
from datetime import datetime, timedelta
from typing import Optional

import pytest

from src.ruralwork.ruralwork.attendance.calculator.personal_leave import deduct
from src.ruralwork.ruralwork.attendance.model import ApplyDeduction, ScoreAdjustment
from src.ruralwork.ruralwork.core.enums import Role
from src.ruralwork.ruralwork.core.exceptions import DuplicateRecordError, MissingReferenceError
from src.ruralwork.ruralwork.store.repository import Collection
from src.ruralwork.ruralwork.users.model import User

# same unique keys as database/schema.sql
UNIQUE_KEYS = {
    Collection.USERS: ("phone",),
    Collection.EVALUATIONS: ("evaluator_id", "evaluatee_id", "evaluation_year"),
    Collection.VOTE_RECORDS: ("vote_id", "voter_id"),
    Collection.TEAM_EVALUATIONS: ("activity_id", "team_id", "evaluator_id"),
    Collection.SCORE_ADJUSTMENTS: ("idempotency_key",),
}


class InMemoryRecordStore:
    def __init__(self):
        self.tables: dict[Collection, dict[str, dict]] = {c: {} for c in Collection}
        self._ids = itertools.count(1)
        self._ticks = itertools.count(1)

    def _stamp(self) -> datetime:
        return datetime(2026, 1, 1) + timedelta(seconds=next(self._ticks))

    def fetch(self, collection, *, filters=None, order_by=None, pagination=None):
        rows = [
            copy.deepcopy(r)
            for r in self.tables[collection].values()
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order_by is not None:
            rows.sort(key=lambda r: r.get(order_by.column) or datetime.min, reverse=not order_by.ascending)
        if pagination is not None:
            rows = rows[pagination.offset : pagination.offset + pagination.page_size]
        return rows

    def insert(self, collection, record):
        row = dict(record)
        row.setdefault("id", str(next(self._ids)))
        row.setdefault("created_at", self._stamp())
        key = UNIQUE_KEYS.get(collection)
        if key and any(all(r.get(k) == row.get(k) for k in key) for r in self.tables[collection].values()):
            raise DuplicateRecordError(f"duplicate {collection.value} {key}")
        self.tables[collection][row["id"]] = row
        return copy.deepcopy(row)

    def update(self, collection, record_id, fields, *, expected=None):
        row = self.tables[collection].get(record_id)
        if row is None:
            return None
        if any(row.get(k) != v for k, v in (expected or {}).items()):
            return None
        row.update(fields)
        return copy.deepcopy(row)

    def add_user(self, name: str, role: Role = Role.TOWN_STAFF, **fields) -> str:
        row = {
            "name": name,
            "role": role.value,
            "total_score": 100.0,
            "is_active": True,
            "phone": f"1390000{len(self.tables[Collection.USERS]):04d}",
        }
        row.update(fields)
        return self.insert(Collection.USERS, row)["id"]


class StoreScoreRepository:
    """ScoreRepository over InMemoryRecordStore; single-threaded use only."""

    def __init__(self, store: InMemoryRecordStore):
        self._store = store

    def get_adjustment(self, idempotency_key: str) -> Optional[ScoreAdjustment]:
        rows = self._store.fetch(Collection.SCORE_ADJUSTMENTS, filters={"idempotency_key": idempotency_key})
        if not rows:
            return None
        r = rows[0]
        return ScoreAdjustment(
            idempotency_key=r["idempotency_key"],
            user_id=r["user_id"],
            amount=r["amount"],
            reason=r["reason"],
            score_before=r["score_before"],
            score_after=r["score_after"],
        )

    def apply_adjustment(self, command: ApplyDeduction, *, floor: float) -> ScoreAdjustment:
        rows = self._store.fetch(Collection.USERS, filters={"id": command.user_id})
        if not rows:
            raise MissingReferenceError(command.user_id)
        before = rows[0]["total_score"]
        after = deduct(before, command.amount, floor=floor)
        self._store.insert(
            Collection.SCORE_ADJUSTMENTS,
            {
                "idempotency_key": command.idempotency_key,
                "user_id": command.user_id,
                "amount": command.amount,
                "reason": command.reason,
                "score_before": before,
                "score_after": after,
            },
        )
        self._store.update(Collection.USERS, command.user_id, {"total_score": after})
        return ScoreAdjustment(command.idempotency_key, command.user_id, command.amount, command.reason, before, after)


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def score_repo(store) -> StoreScoreRepository:
    return StoreScoreRepository(store)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 6, 15, 9, 30, 0)


@pytest.fixture
def make_user():
    def _make(user_id: str, name: str = "", role: Role = Role.TOWN_STAFF, **kwargs) -> User:
        return User(id=user_id, name=name or f"user-{user_id}", role=role, **kwargs)

    return _make
