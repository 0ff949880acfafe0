from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import as_datetime
from ..core.enums import VoteStatus
from ..store.repository import Collection, OrderBy, RecordStore
from .model import Candidate, Vote, VoteRecord
from .repository import VoteRepository


def _candidate(raw) -> Candidate:
    if isinstance(raw, dict):
        return Candidate(id=str(raw["id"]), name=raw.get("name") or "", description=raw.get("description") or "")
    return Candidate(id=str(raw), name=str(raw))


def vote_from_row(row: dict) -> Vote:
    return Vote(
        id=str(row["id"]),
        title=row.get("title") or "",
        status=VoteStatus(row.get("status") or VoteStatus.DRAFT.value),
        candidates=tuple(_candidate(c) for c in (row.get("candidates") or [])),
        max_votes_per_user=int(row.get("max_votes_per_user") or 1),
        show_results=bool(row.get("show_results", False)),
        description=row.get("description") or "",
        start_time=as_datetime(row.get("start_time")),
        end_time=as_datetime(row.get("end_time")),
    )


def vote_record_from_row(row: dict) -> VoteRecord:
    return VoteRecord(
        id=str(row["id"]),
        vote_id=str(row["vote_id"]),
        voter_id=str(row["voter_id"]),
        candidates=frozenset(str(c) for c in (row.get("candidates") or [])),
        vote_time=as_datetime(row.get("vote_time")),
    )


class StoreVoteRepository(VoteRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    def list_votes(self) -> Sequence[Vote]:
        rows = self._store.fetch(Collection.VOTES, order_by=OrderBy("created_at", ascending=False))
        return [vote_from_row(r) for r in rows]

    def get_vote(self, vote_id: str) -> Optional[Vote]:
        rows = self._store.fetch(Collection.VOTES, filters={"id": vote_id})
        return vote_from_row(rows[0]) if rows else None

    @staticmethod
    def _to_row(fields: Mapping[str, Any]) -> dict:
        row = dict(fields)
        if "candidates" in row:
            row["candidates"] = [asdict(c) for c in row["candidates"]]
        if isinstance(row.get("status"), VoteStatus):
            row["status"] = row["status"].value
        return row

    def create_vote(self, fields: Mapping[str, Any]) -> str:
        row = self._store.insert(Collection.VOTES, self._to_row(fields))
        return str(row["id"])

    def update_vote(self, vote_id: str, fields: Mapping[str, Any], *, expected_status: VoteStatus) -> Optional[Vote]:
        row = self._store.update(
            Collection.VOTES, vote_id, self._to_row(fields), expected={"status": expected_status.value}
        )
        return vote_from_row(row) if row else None

    def list_records(self, *, vote_id: Optional[str] = None) -> Sequence[VoteRecord]:
        filters = {"vote_id": vote_id} if vote_id else None
        return [vote_record_from_row(r) for r in self._store.fetch(Collection.VOTE_RECORDS, filters=filters)]

    def get_record(self, *, vote_id: str, voter_id: str) -> Optional[VoteRecord]:
        rows = self._store.fetch(Collection.VOTE_RECORDS, filters={"vote_id": vote_id, "voter_id": voter_id})
        return vote_record_from_row(rows[0]) if rows else None

    def create_record(self, *, vote_id: str, voter_id: str, candidates: Sequence[str], vote_time: datetime) -> str:
        row = self._store.insert(
            Collection.VOTE_RECORDS,
            {"vote_id": vote_id, "voter_id": voter_id, "candidates": list(candidates), "vote_time": vote_time},
        )
        return str(row["id"])
