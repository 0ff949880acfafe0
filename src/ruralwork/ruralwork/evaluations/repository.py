from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import EvaluationKey, EvaluationRecord


class EvaluationRepository(Protocol):
    def list_completed(self, *, evaluation_year: Optional[str] = None) -> Sequence[EvaluationRecord]:
        raise NotImplementedError

    def list_by_evaluator(self, *, evaluator_id: str, evaluation_year: str) -> Sequence[EvaluationRecord]:
        raise NotImplementedError

    def get_by_key(self, key: EvaluationKey) -> Optional[EvaluationRecord]:
        raise NotImplementedError

    def insert(self, record: EvaluationRecord) -> EvaluationRecord:
        """Raises DuplicateRecordError when the natural key already exists."""

        raise NotImplementedError

    def update_draft(self, record: EvaluationRecord) -> Optional[EvaluationRecord]:
        """Overwrite a draft in place; returns None if it was completed meanwhile."""

        raise NotImplementedError
