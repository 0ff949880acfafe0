from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import as_datetime
from ..common.numbers import as_float
from ..core.enums import Dimension
from ..store.repository import Collection, RecordStore
from .model import EvaluationKey, EvaluationRecord
from .repository import EvaluationRepository


def evaluation_from_row(row: dict) -> EvaluationRecord:
    return EvaluationRecord(
        id=str(row["id"]),
        evaluator_id=str(row["evaluator_id"]),
        evaluatee_id=str(row["evaluatee_id"]),
        evaluation_year=str(row.get("evaluation_year") or ""),
        # raw values are kept as stored; aggregation decides what they contribute
        score_de=row.get("score_de"),
        score_neng=row.get("score_neng"),
        score_qin=row.get("score_qin"),
        score_ji=row.get("score_ji"),
        score_lian=row.get("score_lian"),
        is_completed=bool(row.get("is_completed", False)),
        comment=row.get("comment") or "",
        updated_at=as_datetime(row.get("updated_at")),
    )


def _fields(record: EvaluationRecord) -> dict:
    fields = {d.value: as_float(getattr(record, d.value)) for d in Dimension}
    fields.update(
        {
            "total_score": record.total_score,
            "is_completed": record.is_completed,
            "comment": record.comment,
        }
    )
    return fields


class StoreEvaluationRepository(EvaluationRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    def list_completed(self, *, evaluation_year: Optional[str] = None) -> Sequence[EvaluationRecord]:
        filters: dict = {"is_completed": True}
        if evaluation_year:
            filters["evaluation_year"] = evaluation_year
        return [evaluation_from_row(r) for r in self._store.fetch(Collection.EVALUATIONS, filters=filters)]

    def list_by_evaluator(self, *, evaluator_id: str, evaluation_year: str) -> Sequence[EvaluationRecord]:
        rows = self._store.fetch(
            Collection.EVALUATIONS,
            filters={"evaluator_id": evaluator_id, "evaluation_year": evaluation_year},
        )
        return [evaluation_from_row(r) for r in rows]

    def get_by_key(self, key: EvaluationKey) -> Optional[EvaluationRecord]:
        rows = self._store.fetch(
            Collection.EVALUATIONS,
            filters={
                "evaluator_id": key.evaluator_id,
                "evaluatee_id": key.evaluatee_id,
                "evaluation_year": key.evaluation_year,
            },
        )
        return evaluation_from_row(rows[0]) if rows else None

    def insert(self, record: EvaluationRecord) -> EvaluationRecord:
        row = dict(_fields(record))
        row.update(
            {
                "evaluator_id": record.evaluator_id,
                "evaluatee_id": record.evaluatee_id,
                "evaluation_year": record.evaluation_year,
                "evaluation_period": "年度评价",
            }
        )
        return evaluation_from_row(self._store.insert(Collection.EVALUATIONS, row))

    def update_draft(self, record: EvaluationRecord) -> Optional[EvaluationRecord]:
        row = self._store.update(
            Collection.EVALUATIONS,
            record.id,
            _fields(record),
            expected={"is_completed": False},
        )
        return evaluation_from_row(row) if row else None
