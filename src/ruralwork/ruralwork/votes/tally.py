from __future__ import annotations

from typing import Iterable, Sequence

from ..common.numbers import percentage
from ..common.ordering import sort_desc
from .model import Candidate, TallyResult, TallyRow, VoteRecord


def tally(vote_records: Iterable[VoteRecord], candidates: Sequence[Candidate]) -> TallyResult:
    """Approval-voting tally.

    Each ballot adds one vote to every candidate it names. Percentages are taken
    against the number of ballots, not selections, so with multi-select votes
    they can sum to more than 100.
    """

    counts: dict[str, int] = {c.id: 0 for c in candidates}
    total_votes_cast = 0
    for record in vote_records:
        total_votes_cast += 1
        for candidate_id in set(record.candidates):
            # names off the ballot are ignored
            if candidate_id in counts:
                counts[candidate_id] += 1

    ordered = sort_desc(candidates, key=lambda c: counts[c.id])
    rows = tuple(
        TallyRow(
            candidate_id=c.id,
            name=c.name,
            votes=counts[c.id],
            percentage=percentage(counts[c.id], total_votes_cast),
            rank=i,
        )
        for i, c in enumerate(ordered, start=1)
    )
    return TallyResult(total_votes_cast=total_votes_cast, rows=rows)


def participation_rate(vote_record_count: int, vote_count: int, user_count: int) -> float:
    """Ballots cast over every (vote, user) pair, as a percentage."""

    return percentage(vote_record_count, vote_count * user_count)
