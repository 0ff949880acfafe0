from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import ActivityStatus
from .model import TeamActivity, TeamEvaluation


class TeamEvaluationRepository(Protocol):
    def list_all(self, *, activity_id: Optional[str] = None) -> Sequence[TeamEvaluation]:
        raise NotImplementedError

    def insert(
        self,
        *,
        activity_id: str,
        evaluator_id: str,
        team_id: str,
        scores: Mapping[str, float],
        comment: Optional[str],
    ) -> str:
        """Raises DuplicateRecordError if the evaluator already rated this team in this activity."""

        raise NotImplementedError


class TeamActivityRepository(Protocol):
    def list_activities(self, *, status: Optional[ActivityStatus] = None) -> Sequence[TeamActivity]:
        raise NotImplementedError

    def get_activity(self, activity_id: str) -> Optional[TeamActivity]:
        raise NotImplementedError

    def create_activity(self, fields: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def update_activity(
        self, activity_id: str, fields: Mapping[str, Any], *, expected_status: ActivityStatus
    ) -> Optional[TeamActivity]:
        """Apply ``fields`` only while the activity is still in ``expected_status``; None otherwise."""

        raise NotImplementedError
