from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence

from ..common.audit import AuditLog
from ..common.datetime_utils import current_evaluation_year, now_local
from ..common.validators import require_score
from ..core.enums import Capability, Dimension, EvaluationState, Role
from ..core.exceptions import DuplicateRecordError, EvaluationLockedError, ValidationError
from ..core.permissions import require_capability
from ..users.repository import UserRepository
from .model import EvaluationKey, EvaluationRecord, EvaluationTarget
from .repository import EvaluationRepository

logger = logging.getLogger(__name__)


class EvaluationService:
    """Use case: annual peer evaluation (save draft, submit, list targets).

    A record moves Draft -> Completed exactly once and is keyed by
    (evaluator, evaluatee, year); saving again overwrites the draft in place.
    """

    def __init__(
        self,
        evaluations: EvaluationRepository,
        users: UserRepository,
        *,
        audit: Optional[AuditLog] = None,
        evaluation_year: Optional[str] = None,
    ):
        self._evaluations = evaluations
        self._users = users
        self._audit = audit
        self._year = evaluation_year

    def current_year(self) -> str:
        return self._year or current_evaluation_year(now_local())

    @staticmethod
    def _validated_scores(scores: Mapping[str, Any], *, submit: bool) -> dict[str, float]:
        out: dict[str, float] = {}
        for d in Dimension:
            raw = scores.get(d.value)
            if raw is None or raw == "":
                if submit:
                    raise ValidationError("请为所有维度评分后再提交")
                out[d.value] = 0.0
                continue
            value = require_score(raw, d.label)
            if submit and value == 0:
                raise ValidationError("请为所有维度评分后再提交")
            out[d.value] = value
        return out

    def save(
        self,
        *,
        current_role: Role,
        evaluator_id: str,
        evaluatee_id: str,
        scores: Mapping[str, Any],
        comment: str = "",
        submit: bool = False,
    ) -> EvaluationRecord:
        require_capability(current_role, Capability.EVALUATE)

        if str(evaluator_id) == str(evaluatee_id):
            raise ValidationError("不能评价自己")
        if not self._users.get_by_id(evaluatee_id):
            raise ValidationError("被评价人不存在")

        validated = self._validated_scores(scores, submit=submit)
        key = EvaluationKey(str(evaluator_id), str(evaluatee_id), self.current_year())

        record = EvaluationRecord(
            id="",
            evaluator_id=key.evaluator_id,
            evaluatee_id=key.evaluatee_id,
            evaluation_year=key.evaluation_year,
            is_completed=bool(submit),
            comment=(comment or "").strip(),
            **validated,
        )

        existing = self._evaluations.get_by_key(key)
        if existing is None:
            try:
                saved = self._evaluations.insert(record)
            except DuplicateRecordError:
                # another request created the draft first; fall through to overwrite it
                existing = self._evaluations.get_by_key(key)
                if existing is None:
                    raise
            else:
                self._after_save(saved)
                return saved

        if existing.is_completed:
            raise EvaluationLockedError("评价已提交，不能修改")

        saved = self._evaluations.update_draft(replace(record, id=existing.id))
        if saved is None:
            raise EvaluationLockedError("评价已提交，不能修改")
        self._after_save(saved)
        return saved

    def save_draft(self, **kwargs) -> EvaluationRecord:
        return self.save(submit=False, **kwargs)

    def submit(self, **kwargs) -> EvaluationRecord:
        return self.save(submit=True, **kwargs)

    def _after_save(self, record: EvaluationRecord) -> None:
        logger.info(
            "evaluation %s saved evaluator=%s evaluatee=%s state=%s total=%s",
            record.id, record.evaluator_id, record.evaluatee_id, record.state.value, record.total_score,
        )
        if self._audit and record.is_completed:
            self._audit.record(
                record.evaluator_id,
                "submit_evaluation",
                "evaluations",
                {"evaluatee_id": record.evaluatee_id, "total_score": record.total_score},
            )

    def list_targets(self, *, current_user_id: str) -> Sequence[EvaluationTarget]:
        """Everyone except the current user, with this year's rating state."""

        mine = {
            r.evaluatee_id: r
            for r in self._evaluations.list_by_evaluator(
                evaluator_id=str(current_user_id), evaluation_year=self.current_year()
            )
        }
        out: list[EvaluationTarget] = []
        for user in self._users.list_all():
            if user.id == str(current_user_id) or not user.is_active:
                continue
            rec = mine.get(user.id)
            out.append(
                EvaluationTarget(
                    user_id=user.id,
                    name=user.name,
                    department=user.department,
                    position=user.position,
                    state=rec.state if rec else EvaluationState.PENDING,
                    evaluation_id=rec.id if rec else None,
                )
            )
        return out
