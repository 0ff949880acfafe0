from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import VoteStatus
from .model import Vote, VoteRecord


class VoteRepository(Protocol):
    def list_votes(self) -> Sequence[Vote]:
        raise NotImplementedError

    def get_vote(self, vote_id: str) -> Optional[Vote]:
        raise NotImplementedError

    def create_vote(self, fields: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def update_vote(self, vote_id: str, fields: Mapping[str, Any], *, expected_status: VoteStatus) -> Optional[Vote]:
        """Apply ``fields`` only while the vote is still in ``expected_status``; None otherwise."""

        raise NotImplementedError

    def list_records(self, *, vote_id: Optional[str] = None) -> Sequence[VoteRecord]:
        raise NotImplementedError

    def get_record(self, *, vote_id: str, voter_id: str) -> Optional[VoteRecord]:
        raise NotImplementedError

    def create_record(self, *, vote_id: str, voter_id: str, candidates: Sequence[str], vote_time: datetime) -> str:
        """Raises DuplicateRecordError when the voter already has a ballot."""

        raise NotImplementedError
