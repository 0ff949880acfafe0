from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.audit import AuditLog
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import Capability, Role, VoteStatus
from ..core.exceptions import DuplicateRecordError, DuplicateVoteError, ValidationError
from ..core.permissions import has_capability, require_capability
from ..users.repository import UserRepository
from .model import Candidate, TallyResult, Vote
from .repository import VoteRepository
from .tally import tally

logger = logging.getLogger(__name__)

# draft -> active -> closed | completed
VOTE_TRANSITIONS = {
    VoteStatus.DRAFT: frozenset({VoteStatus.ACTIVE}),
    VoteStatus.ACTIVE: frozenset({VoteStatus.CLOSED, VoteStatus.COMPLETED}),
}


class VoteService:
    """Use cases: manage vote activities, cast a ballot, read results."""

    def __init__(self, votes: VoteRepository, users: UserRepository, *, audit: Optional[AuditLog] = None):
        self._votes = votes
        self._users = users
        self._audit = audit

    def _get_vote(self, vote_id: str) -> Vote:
        vote = self._votes.get_vote(vote_id)
        if not vote:
            raise ValidationError("投票不存在")
        return vote

    def list_votes(self, *, current_role: Role) -> Sequence[Vote]:
        """Drafts are only visible to vote managers."""

        votes = self._votes.list_votes()
        if has_capability(current_role, Capability.MANAGE_VOTES):
            return votes
        return [v for v in votes if v.status != VoteStatus.DRAFT]

    # -------- administration --------
    def _candidates(self, candidate_ids: Sequence[str]) -> tuple[Candidate, ...]:
        ids = list(dict.fromkeys(str(c).strip() for c in candidate_ids if str(c).strip()))
        if not ids:
            raise ValidationError("请选择候选人")
        out = []
        for user_id in ids:
            user = self._users.get_by_id(user_id)
            if not user:
                raise ValidationError("候选人不存在")
            description = " - ".join(p for p in (user.department, user.position) if p)
            out.append(Candidate(id=user.id, name=user.name, description=description))
        return tuple(out)

    def _vote_fields(
        self,
        *,
        title: str,
        candidate_ids: Sequence[str],
        max_votes_per_user: Any,
        show_results: bool,
        description: str,
        start_time: Optional[datetime],
        end_time: Optional[datetime],
    ) -> dict:
        title = require_non_empty(title, "投票标题")
        candidates = self._candidates(candidate_ids)
        try:
            max_votes = int(max_votes_per_user)
        except (TypeError, ValueError):
            raise ValidationError("每人可投票数无效")
        if not 1 <= max_votes <= len(candidates):
            raise ValidationError(f"每人可投票数必须在1-{len(candidates)}之间")
        if start_time and end_time and end_time <= start_time:
            raise ValidationError("结束时间必须晚于开始时间")
        return {
            "title": title,
            "description": (description or "").strip() or None,
            "candidates": candidates,
            "max_votes_per_user": max_votes,
            "show_results": bool(show_results),
            "start_time": start_time,
            "end_time": end_time,
        }

    def create_vote(
        self,
        *,
        current_role: Role,
        creator_id: str,
        title: str,
        candidate_ids: Sequence[str],
        max_votes_per_user: Any = 1,
        show_results: bool = False,
        description: str = "",
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> str:
        """New votes start as drafts."""

        require_capability(current_role, Capability.MANAGE_VOTES)
        fields = self._vote_fields(
            title=title,
            candidate_ids=candidate_ids,
            max_votes_per_user=max_votes_per_user,
            show_results=show_results,
            description=description,
            start_time=start_time,
            end_time=end_time,
        )
        fields.update(status=VoteStatus.DRAFT, created_by=creator_id)
        vote_id = self._votes.create_vote(fields)

        logger.info("vote %s created candidates=%d", vote_id, len(fields["candidates"]))
        if self._audit:
            self._audit.record(creator_id, "create_vote", "votes", {"vote_id": vote_id, "title": fields["title"]})
        return vote_id

    def update_vote(
        self,
        *,
        current_role: Role,
        user_id: str,
        vote_id: str,
        title: str,
        candidate_ids: Sequence[str],
        max_votes_per_user: Any = 1,
        show_results: bool = False,
        description: str = "",
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> Vote:
        """Edit a vote that has not started; once open the ballot is frozen."""

        require_capability(current_role, Capability.MANAGE_VOTES)
        vote = self._get_vote(vote_id)
        if vote.status != VoteStatus.DRAFT:
            raise ValidationError("只能修改草稿状态的投票")
        fields = self._vote_fields(
            title=title,
            candidate_ids=candidate_ids,
            max_votes_per_user=max_votes_per_user,
            show_results=show_results,
            description=description,
            start_time=start_time,
            end_time=end_time,
        )
        updated = self._votes.update_vote(vote.id, fields, expected_status=VoteStatus.DRAFT)
        if updated is None:
            raise ValidationError("只能修改草稿状态的投票")

        if self._audit:
            self._audit.record(user_id, "update_vote", "votes", {"vote_id": vote.id})
        return updated

    def set_status(self, *, current_role: Role, user_id: str, vote_id: str, status: VoteStatus) -> Vote:
        require_capability(current_role, Capability.MANAGE_VOTES)
        vote = self._get_vote(vote_id)
        if status not in VOTE_TRANSITIONS.get(vote.status, frozenset()):
            raise ValidationError(f"投票状态不能从 {vote.status.value} 变更为 {status.value}")

        updated = self._votes.update_vote(vote.id, {"status": status}, expected_status=vote.status)
        if updated is None:
            raise ValidationError("投票状态已变更，请刷新后重试")

        logger.info("vote %s %s -> %s", vote.id, vote.status.value, status.value)
        if self._audit:
            self._audit.record(user_id, "set_vote_status", "votes", {"vote_id": vote.id, "status": status.value})
        return updated

    # -------- voting --------
    def cast(
        self,
        *,
        current_role: Role,
        voter_id: str,
        vote_id: str,
        candidate_ids: Sequence[str],
        now: Optional[datetime] = None,
    ) -> str:
        require_capability(current_role, Capability.VOTE)
        now = now or now_local()

        vote = self._get_vote(vote_id)
        if not vote.is_open(now):
            raise ValidationError("投票未开始或已结束")

        picked = list(dict.fromkeys(str(c) for c in candidate_ids))
        if not picked:
            raise ValidationError("请选择候选人")
        if len(picked) > vote.max_votes_per_user:
            raise ValidationError(f"最多只能选择 {vote.max_votes_per_user} 位候选人")
        unknown = set(picked) - vote.candidate_ids()
        if unknown:
            raise ValidationError("候选人不在本次投票中")

        if self._votes.get_record(vote_id=vote.id, voter_id=str(voter_id)):
            raise DuplicateVoteError("您已参与本次投票")
        try:
            record_id = self._votes.create_record(
                vote_id=vote.id, voter_id=str(voter_id), candidates=picked, vote_time=now
            )
        except DuplicateRecordError:
            raise DuplicateVoteError("您已参与本次投票")

        logger.info("ballot %s cast vote=%s picks=%d", record_id, vote.id, len(picked))
        if self._audit:
            self._audit.record(str(voter_id), "cast_vote", "votes", {"vote_id": vote.id, "candidates": picked})
        return record_id

    def can_view_results(self, vote: Vote, *, voter_id: str) -> bool:
        if vote.show_results or vote.status == VoteStatus.CLOSED:
            return True
        return self._votes.get_record(vote_id=vote.id, voter_id=str(voter_id)) is not None

    def results(self, *, current_role: Role, user_id: str, vote_id: str) -> TallyResult:
        vote = self._get_vote(vote_id)
        if not has_capability(current_role, Capability.MANAGE_VOTES) and not self.can_view_results(vote, voter_id=user_id):
            raise ValidationError("投票结果暂未公开")
        return tally(self._votes.list_records(vote_id=vote.id), vote.candidates)
