from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import VoteStatus


@dataclass(frozen=True)
class Candidate:
    id: str
    name: str
    description: str = ""


@dataclass(frozen=True)
class Vote:
    """A voting activity (approval voting, up to ``max_votes_per_user`` picks)."""

    id: str
    title: str
    status: VoteStatus
    candidates: tuple[Candidate, ...] = ()
    max_votes_per_user: int = 1
    show_results: bool = False
    description: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def candidate_ids(self) -> frozenset[str]:
        return frozenset(c.id for c in self.candidates)

    def is_open(self, now: datetime) -> bool:
        if self.status != VoteStatus.ACTIVE:
            return False
        if self.start_time and now < self.start_time:
            return False
        if self.end_time and now > self.end_time:
            return False
        return True


@dataclass(frozen=True)
class VoteRecord:
    """One voter's ballot; at most one per (vote_id, voter_id)."""

    id: str
    vote_id: str
    voter_id: str
    candidates: frozenset[str] = field(default_factory=frozenset)
    vote_time: Optional[datetime] = None


@dataclass(frozen=True)
class TallyRow:
    candidate_id: str
    name: str
    votes: int
    percentage: float
    rank: int


@dataclass(frozen=True)
class TallyResult:
    total_votes_cast: int
    rows: tuple[TallyRow, ...]
