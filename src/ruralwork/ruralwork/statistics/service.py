from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..attendance.standings import build_standings
from ..common.datetime_utils import now_local
from ..common.numbers import round1, safe_ratio
from ..core.constants import RECENT_USER_DAYS, TOP_PERFORMERS_LIMIT
from ..core.enums import Capability, Role, VoteStatus
from ..core.exceptions import StatisticsUnavailableError, StoreUnavailableError
from ..core.permissions import require_capability
from ..evaluations.aggregator import aggregate
from ..evaluations.model import EvaluationRecord
from ..evaluations.ranking import (
    completion_stats,
    dimension_overview,
    rank,
    rollup_by_department,
    score_distribution,
)
from ..evaluations.repository import EvaluationRepository
from ..leaves.repository import LeaveRepository
from ..leaves.service import summarize_leaves
from ..users.model import User
from ..users.repository import UserRepository
from ..votes.model import Vote, VoteRecord
from ..votes.repository import VoteRepository
from ..votes.tally import participation_rate
from .model import Dashboard, EvaluationStats, UserStats, VoteStats

logger = logging.getLogger(__name__)


def user_stats(users: Sequence[User], *, now: datetime) -> UserStats:
    since = now - timedelta(days=RECENT_USER_DAYS)
    by_role = Counter(u.role for u in users)
    return UserStats(
        total=len(users),
        active=sum(1 for u in users if u.is_active),
        by_role={r.value: by_role.get(r, 0) for r in Role},
        recent=sum(1 for u in users if u.created_at and u.created_at >= since),
    )


def vote_stats(votes: Sequence[Vote], records: Sequence[VoteRecord], users: Sequence[User]) -> VoteStats:
    return VoteStats(
        total_votes=len(votes),
        active_votes=sum(1 for v in votes if v.status == VoteStatus.ACTIVE),
        total_records=len(records),
        participation_rate=participation_rate(len(records), len(votes), len(users)),
    )


def evaluation_stats(records: Sequence[EvaluationRecord], users: Sequence[User], *, evaluation_year: str) -> EvaluationStats:
    completed = [r for r in records if r.is_completed]
    ranked = rank(aggregate(completed, users).values())
    return EvaluationStats(
        evaluation_year=evaluation_year,
        total_completed=len(completed),
        average_score=round1(safe_ratio(sum(r.total_score for r in completed), len(completed))),
        dimension_stats=dimension_overview(completed),
        top_performers=ranked[:TOP_PERFORMERS_LIMIT],
        user_scores=ranked,
        departments=rollup_by_department(completed, users),
        distribution=score_distribution(completed),
        completion=completion_stats(completed, users),
    )


class StatisticsService:
    """Admin dashboard.

    Every input is read up front, then everything is computed from that one
    snapshot. A store failure yields StatisticsUnavailableError, never a
    partially filled dashboard.
    """

    def __init__(
        self,
        users: UserRepository,
        evaluations: EvaluationRepository,
        votes: VoteRepository,
        leaves: LeaveRepository,
        *,
        evaluation_year: Optional[str] = None,
    ):
        self._users = users
        self._evaluations = evaluations
        self._votes = votes
        self._leaves = leaves
        self._evaluation_year = evaluation_year

    def dashboard(self, *, current_role: Role, evaluation_year: Optional[str] = None, now: Optional[datetime] = None) -> Dashboard:
        require_capability(current_role, Capability.VIEW_STATISTICS)
        now = now or now_local()
        year = evaluation_year or self._evaluation_year or str(now.year)

        try:
            users = list(self._users.list_all())
            records = list(self._evaluations.list_completed(evaluation_year=year))
            votes = list(self._votes.list_votes())
            vote_records = list(self._votes.list_records())
            leaves = list(self._leaves.list_requests())
        except StoreUnavailableError as e:
            logger.error("statistics snapshot failed: %s", e)
            raise StatisticsUnavailableError("统计数据加载失败") from e

        return Dashboard(
            users=user_stats(users, now=now),
            votes=vote_stats(votes, vote_records, users),
            evaluations=evaluation_stats(records, users, evaluation_year=year),
            leaves=summarize_leaves(leaves),
            attendance=build_standings(users, leaves),
        )

    def evaluation_snapshot(
        self, *, current_role: Role, evaluation_year: Optional[str] = None
    ) -> tuple[list[User], list[EvaluationRecord], EvaluationStats]:
        """Users, completed records and their stats for one year; used by the export."""

        require_capability(current_role, Capability.EXPORT_REPORTS)
        year = evaluation_year or self._evaluation_year or str(now_local().year)
        try:
            users = list(self._users.list_all())
            records = list(self._evaluations.list_completed(evaluation_year=year))
        except StoreUnavailableError as e:
            logger.error("evaluation snapshot failed: %s", e)
            raise StatisticsUnavailableError("统计数据加载失败") from e
        return users, records, evaluation_stats(records, users, evaluation_year=year)

    def attendance_snapshot(self, *, current_role: Role):
        require_capability(current_role, Capability.EXPORT_REPORTS)
        try:
            users = list(self._users.list_all())
            leaves = list(self._leaves.list_requests())
        except StoreUnavailableError as e:
            logger.error("attendance snapshot failed: %s", e)
            raise StatisticsUnavailableError("统计数据加载失败") from e
        return build_standings(users, leaves)
