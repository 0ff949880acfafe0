from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..common.audit import AuditLog
from ..common.datetime_utils import now_local
from ..common.numbers import round1, safe_ratio
from ..common.ordering import sort_desc
from ..common.validators import require_non_empty, require_score
from ..core.enums import ActivityStatus, Capability, Role, TeamDimension
from ..core.exceptions import DuplicateRecordError, ValidationError
from ..core.permissions import require_capability
from ..evaluations.accumulator import ScoreAccumulator
from ..users.model import User
from ..users.repository import UserRepository
from .model import TeamActivity, TeamEvaluation, TeamSummary
from .repository import TeamActivityRepository, TeamEvaluationRepository
from .store_team_repository import TEAM_DIMENSIONS

logger = logging.getLogger(__name__)

# active -> completed | cancelled
ACTIVITY_TRANSITIONS = {
    ActivityStatus.ACTIVE: frozenset({ActivityStatus.COMPLETED, ActivityStatus.CANCELLED}),
}


def summarize_teams(evaluations: Iterable[TeamEvaluation], teams: Iterable[User]) -> list[TeamSummary]:
    """Per-team averages, ranked by total average (stable, highest first)."""

    names = {t.id: t.name for t in teams}
    accumulators: dict[str, ScoreAccumulator] = {}
    for evaluation in evaluations:
        acc = accumulators.get(evaluation.team_id)
        if acc is None:
            acc = ScoreAccumulator(TEAM_DIMENSIONS)
            accumulators[evaluation.team_id] = acc
        acc.add(evaluation.scores)

    summaries = [
        TeamSummary(
            team_id=team_id,
            team_name=names.get(team_id, team_id),
            dimension_averages=acc.averages(),
            total_average=acc.total_average(),
            evaluation_count=acc.count,
        )
        for team_id, acc in accumulators.items()
    ]
    ordered = sort_desc(summaries, key=lambda s: s.total_average)
    return [dataclasses.replace(s, rank=i) for i, s in enumerate(ordered, start=1)]


def overall_average(evaluations: Sequence[TeamEvaluation]) -> float:
    return round1(safe_ratio(sum(e.total_score for e in evaluations), len(evaluations)))


class TeamEvaluationService:
    def __init__(
        self,
        evaluations: TeamEvaluationRepository,
        users: UserRepository,
        activities: TeamActivityRepository,
        *,
        audit: Optional[AuditLog] = None,
    ):
        self._evaluations = evaluations
        self._users = users
        self._activities = activities
        self._audit = audit

    # -------- activities --------
    def _get_activity(self, activity_id: str) -> TeamActivity:
        activity = self._activities.get_activity(activity_id)
        if not activity:
            raise ValidationError("评分活动不存在")
        return activity

    @staticmethod
    def _activity_fields(
        *, title: str, description: str, start_time: Optional[datetime], end_time: Optional[datetime]
    ) -> dict:
        title = require_non_empty(title, "活动名称")
        if start_time is None or end_time is None:
            raise ValidationError("请设置活动时间")
        if end_time <= start_time:
            raise ValidationError("结束时间必须晚于开始时间")
        return {
            "title": title,
            "description": (description or "").strip() or None,
            "start_time": start_time,
            "end_time": end_time,
        }

    def list_activities(self, *, status: Optional[ActivityStatus] = None) -> Sequence[TeamActivity]:
        return self._activities.list_activities(status=status)

    def create_activity(
        self,
        *,
        current_role: Role,
        creator_id: str,
        title: str,
        start_time: Optional[datetime],
        end_time: Optional[datetime],
        description: str = "",
    ) -> str:
        require_capability(current_role, Capability.MANAGE_TEAM_ACTIVITIES)
        fields = self._activity_fields(title=title, description=description, start_time=start_time, end_time=end_time)
        fields.update(status=ActivityStatus.ACTIVE, created_by=creator_id)
        activity_id = self._activities.create_activity(fields)

        logger.info("team activity %s created %s ~ %s", activity_id, start_time, end_time)
        if self._audit:
            self._audit.record(creator_id, "create_team_activity", "team_evaluation_activities", {"activity_id": activity_id})
        return activity_id

    def update_activity(
        self,
        *,
        current_role: Role,
        user_id: str,
        activity_id: str,
        title: str,
        start_time: Optional[datetime],
        end_time: Optional[datetime],
        description: str = "",
    ) -> TeamActivity:
        require_capability(current_role, Capability.MANAGE_TEAM_ACTIVITIES)
        self._get_activity(activity_id)
        fields = self._activity_fields(title=title, description=description, start_time=start_time, end_time=end_time)
        updated = self._activities.update_activity(activity_id, fields, expected_status=ActivityStatus.ACTIVE)
        if updated is None:
            raise ValidationError("只能修改进行中的活动")

        if self._audit:
            self._audit.record(user_id, "update_team_activity", "team_evaluation_activities", {"activity_id": activity_id})
        return updated

    def set_activity_status(
        self, *, current_role: Role, user_id: str, activity_id: str, status: ActivityStatus
    ) -> TeamActivity:
        require_capability(current_role, Capability.MANAGE_TEAM_ACTIVITIES)
        activity = self._get_activity(activity_id)
        if status not in ACTIVITY_TRANSITIONS.get(activity.status, frozenset()):
            raise ValidationError(f"活动状态不能从 {activity.status.value} 变更为 {status.value}")

        updated = self._activities.update_activity(activity.id, {"status": status}, expected_status=activity.status)
        if updated is None:
            raise ValidationError("活动状态已变更，请刷新后重试")

        logger.info("team activity %s %s -> %s", activity.id, activity.status.value, status.value)
        if self._audit:
            self._audit.record(
                user_id, "set_team_activity_status", "team_evaluation_activities",
                {"activity_id": activity.id, "status": status.value},
            )
        return updated

    # -------- scoring --------
    def submit(
        self,
        *,
        current_role: Role,
        evaluator_id: str,
        activity_id: str,
        team_id: str,
        scores: Mapping[str, Any],
        comment: str = "",
        now: Optional[datetime] = None,
    ) -> str:
        require_capability(current_role, Capability.TEAM_EVALUATE)
        activity_id = require_non_empty(activity_id, "评分活动")
        team_id = require_non_empty(team_id, "工作队")

        activity = self._get_activity(activity_id)
        if not activity.is_open(now or now_local()):
            raise ValidationError("评分活动未开始或已结束")
        team = self._users.get_by_id(team_id)
        if not team or team.role != Role.WORK_TEAM:
            raise ValidationError("工作队不存在")

        validated = {d.value: require_score(scores.get(d.value, 0), d.value) for d in TeamDimension}
        try:
            evaluation_id = self._evaluations.insert(
                activity_id=activity.id,
                evaluator_id=evaluator_id,
                team_id=team_id,
                scores=validated,
                comment=(comment or "").strip() or None,
            )
        except DuplicateRecordError:
            raise ValidationError("您已对该工作队评分")

        logger.info("team evaluation %s: team=%s activity=%s", evaluation_id, team_id, activity.id)
        if self._audit:
            self._audit.record(evaluator_id, "team_evaluate", "team_evaluations", {"team_id": team_id})
        return evaluation_id

    def summary(self, *, current_role: Role, activity_id: Optional[str] = None) -> tuple[list[TeamSummary], float]:
        """(per-team summaries, overall average total score)."""

        require_capability(current_role, Capability.VIEW_STATISTICS)
        teams = [u for u in self._users.list_all() if u.role == Role.WORK_TEAM]
        evaluations = list(self._evaluations.list_all(activity_id=activity_id))
        return summarize_teams(evaluations, teams), overall_average(evaluations)
