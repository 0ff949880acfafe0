from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import as_datetime
from ..core.enums import ActivityStatus, TeamDimension
from ..evaluations.accumulator import record_total
from ..store.repository import Collection, OrderBy, RecordStore
from .model import TeamActivity, TeamEvaluation
from .repository import TeamActivityRepository, TeamEvaluationRepository

TEAM_DIMENSIONS = tuple(d.value for d in TeamDimension)


def team_evaluation_from_row(row: dict) -> TeamEvaluation:
    return TeamEvaluation(
        id=str(row["id"]),
        activity_id=str(row.get("activity_id") or ""),
        evaluator_id=str(row["evaluator_id"]),
        team_id=str(row["team_id"]),
        comment=row.get("comment"),
        created_at=as_datetime(row.get("created_at")),
        **{d: row.get(d) for d in TEAM_DIMENSIONS},
    )


def team_activity_from_row(row: dict) -> TeamActivity:
    return TeamActivity(
        id=str(row["id"]),
        title=row.get("title") or "",
        status=ActivityStatus(row.get("status") or ActivityStatus.ACTIVE.value),
        start_time=as_datetime(row.get("start_time")),
        end_time=as_datetime(row.get("end_time")),
        description=row.get("description") or "",
        created_by=row.get("created_by"),
        created_at=as_datetime(row.get("created_at")),
    )


class StoreTeamEvaluationRepository(TeamEvaluationRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    def list_all(self, *, activity_id: Optional[str] = None) -> Sequence[TeamEvaluation]:
        filters = {"activity_id": activity_id} if activity_id else None
        rows = self._store.fetch(
            Collection.TEAM_EVALUATIONS,
            filters=filters,
            order_by=OrderBy("created_at", ascending=False),
        )
        return [team_evaluation_from_row(r) for r in rows]

    def insert(
        self,
        *,
        activity_id: str,
        evaluator_id: str,
        team_id: str,
        scores: Mapping[str, float],
        comment: Optional[str],
    ) -> str:
        record = {d: scores.get(d, 0.0) for d in TEAM_DIMENSIONS}
        record.update(
            activity_id=activity_id,
            evaluator_id=evaluator_id,
            team_id=team_id,
            total_score=record_total(scores, TEAM_DIMENSIONS),
            comment=comment,
        )
        row = self._store.insert(Collection.TEAM_EVALUATIONS, record)
        return str(row["id"])


class StoreTeamActivityRepository(TeamActivityRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    @staticmethod
    def _to_row(fields: Mapping[str, Any]) -> dict:
        row = dict(fields)
        if isinstance(row.get("status"), ActivityStatus):
            row["status"] = row["status"].value
        return row

    def list_activities(self, *, status: Optional[ActivityStatus] = None) -> Sequence[TeamActivity]:
        filters = {"status": status.value} if status else None
        rows = self._store.fetch(
            Collection.TEAM_ACTIVITIES,
            filters=filters,
            order_by=OrderBy("created_at", ascending=False),
        )
        return [team_activity_from_row(r) for r in rows]

    def get_activity(self, activity_id: str) -> Optional[TeamActivity]:
        rows = self._store.fetch(Collection.TEAM_ACTIVITIES, filters={"id": activity_id})
        return team_activity_from_row(rows[0]) if rows else None

    def create_activity(self, fields: Mapping[str, Any]) -> str:
        row = self._store.insert(Collection.TEAM_ACTIVITIES, self._to_row(fields))
        return str(row["id"])

    def update_activity(
        self, activity_id: str, fields: Mapping[str, Any], *, expected_status: ActivityStatus
    ) -> Optional[TeamActivity]:
        row = self._store.update(
            Collection.TEAM_ACTIVITIES, activity_id, self._to_row(fields), expected={"status": expected_status.value}
        )
        return team_activity_from_row(row) if row else None
