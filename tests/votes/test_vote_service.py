from __future__ import annotations

from datetime import datetime

import pytest

from src.ruralwork.ruralwork.common.audit import AuditLog
from src.ruralwork.ruralwork.core.enums import Role, VoteStatus
from src.ruralwork.ruralwork.core.exceptions import AuthorizationError, DuplicateVoteError, ValidationError
from src.ruralwork.ruralwork.store.repository import Collection
from src.ruralwork.ruralwork.users.store_user_repository import StoreUserRepository
from src.ruralwork.ruralwork.votes.service import VoteService
from src.ruralwork.ruralwork.votes.store_vote_repository import StoreVoteRepository


def add_vote(store, *, status=VoteStatus.ACTIVE, max_votes=2, show_results=False, **extra) -> str:
    row = {
        "title": "优秀干部评选",
        "status": status.value,
        "max_votes_per_user": max_votes,
        "show_results": show_results,
        "candidates": [{"id": "A", "name": "甲"}, {"id": "B", "name": "乙"}, {"id": "C", "name": "丙"}],
    }
    row.update(extra)
    return store.insert(Collection.VOTES, row)["id"]


@pytest.fixture
def service(store):
    return VoteService(StoreVoteRepository(store), StoreUserRepository(store), audit=AuditLog(store))


def test_cast_records_one_ballot(service, store, fixed_now):
    vote_id = add_vote(store)

    service.cast(current_role=Role.TOWN_STAFF, voter_id="u1", vote_id=vote_id, candidate_ids=["A", "B"], now=fixed_now)

    (record,) = store.tables[Collection.VOTE_RECORDS].values()
    assert record["candidates"] == ["A", "B"]
    assert record["vote_time"] == fixed_now


def test_second_ballot_is_rejected(service, store, fixed_now):
    vote_id = add_vote(store)
    service.cast(current_role=Role.TOWN_STAFF, voter_id="u1", vote_id=vote_id, candidate_ids=["A"], now=fixed_now)

    with pytest.raises(DuplicateVoteError):
        service.cast(current_role=Role.TOWN_STAFF, voter_id="u1", vote_id=vote_id, candidate_ids=["B"], now=fixed_now)


def test_too_many_picks_rejected_after_dedup(service, store, fixed_now):
    vote_id = add_vote(store, max_votes=2)

    # duplicates collapse, so this is two picks
    service.cast(current_role=Role.TOWN_STAFF, voter_id="u1", vote_id=vote_id, candidate_ids=["A", "A", "B"], now=fixed_now)
    with pytest.raises(ValidationError):
        service.cast(current_role=Role.TOWN_STAFF, voter_id="u2", vote_id=vote_id, candidate_ids=["A", "B", "C"], now=fixed_now)


@pytest.mark.parametrize("picks", [[], ["Z"]])
def test_empty_or_off_ballot_picks_rejected(service, store, fixed_now, picks):
    vote_id = add_vote(store)

    with pytest.raises(ValidationError):
        service.cast(current_role=Role.TOWN_STAFF, voter_id="u1", vote_id=vote_id, candidate_ids=picks, now=fixed_now)


def test_vote_must_be_open(service, store, fixed_now):
    closed = add_vote(store, status=VoteStatus.CLOSED)
    ended = add_vote(store, end_time=datetime(2026, 6, 1))

    for vote_id in (closed, ended):
        with pytest.raises(ValidationError):
            service.cast(current_role=Role.TOWN_STAFF, voter_id="u1", vote_id=vote_id, candidate_ids=["A"], now=fixed_now)


def test_results_hidden_until_voted(service, store, fixed_now):
    vote_id = add_vote(store)

    with pytest.raises(ValidationError):
        service.results(current_role=Role.TOWN_STAFF, user_id="u1", vote_id=vote_id)

    service.cast(current_role=Role.TOWN_STAFF, voter_id="u1", vote_id=vote_id, candidate_ids=["A"], now=fixed_now)
    result = service.results(current_role=Role.TOWN_STAFF, user_id="u1", vote_id=vote_id)

    assert result.total_votes_cast == 1
    assert result.rows[0].candidate_id == "A"


def test_admin_and_public_results_always_visible(service, store):
    hidden = add_vote(store)
    public = add_vote(store, show_results=True)

    assert service.results(current_role=Role.ADMIN, user_id="admin", vote_id=hidden).total_votes_cast == 0
    assert service.results(current_role=Role.WORK_TEAM, user_id="u9", vote_id=public).total_votes_cast == 0


def test_drafts_hidden_from_voters(service, store):
    add_vote(store, status=VoteStatus.DRAFT)
    add_vote(store)

    assert len(service.list_votes(current_role=Role.TOWN_STAFF)) == 1
    assert len(service.list_votes(current_role=Role.ADMIN)) == 2


def test_role_without_vote_capability_cannot_cast(store, fixed_now, monkeypatch):
    from src.ruralwork.ruralwork.core import permissions

    monkeypatch.setitem(permissions.ROLE_CAPABILITIES, Role.WORK_TEAM, frozenset())
    service = VoteService(StoreVoteRepository(store), StoreUserRepository(store))

    with pytest.raises(AuthorizationError):
        service.cast(current_role=Role.WORK_TEAM, voter_id="u1", vote_id=add_vote(store), candidate_ids=["A"], now=fixed_now)


@pytest.fixture
def nominees(store):
    return [
        store.add_user("甲", department="党政办", position="科员"),
        store.add_user("乙", department="财政所"),
        store.add_user("丙"),
    ]


def test_create_vote_starts_as_draft(service, store, nominees):
    vote_id = service.create_vote(
        current_role=Role.ADMIN, creator_id="adm", title=" 优秀干部评选 ", candidate_ids=nominees, max_votes_per_user=2
    )

    row = store.tables[Collection.VOTES][vote_id]
    assert row["status"] == "draft"
    assert row["title"] == "优秀干部评选"
    assert row["created_by"] == "adm"
    assert row["candidates"][0] == {"id": nominees[0], "name": "甲", "description": "党政办 - 科员"}
    assert [c["description"] for c in row["candidates"][1:]] == ["财政所", ""]
    assert "create_vote" in [r["action"] for r in store.tables[Collection.SYSTEM_LOGS].values()]


def test_create_vote_requires_manage_votes(service, nominees):
    with pytest.raises(AuthorizationError):
        service.create_vote(current_role=Role.TOWN_STAFF, creator_id="u1", title="t", candidate_ids=nominees)


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": "  "},
        {"candidate_ids": []},
        {"candidate_ids": ["nobody"]},
        {"max_votes_per_user": 0},
        {"max_votes_per_user": 4},
        {"max_votes_per_user": "many"},
        {"start_time": datetime(2026, 7, 1), "end_time": datetime(2026, 6, 1)},
    ],
)
def test_create_vote_validation(service, store, nominees, overrides):
    kwargs = dict(current_role=Role.ADMIN, creator_id="adm", title="评选", candidate_ids=nominees)
    kwargs.update(overrides)

    with pytest.raises(ValidationError):
        service.create_vote(**kwargs)
    assert store.tables[Collection.VOTES] == {}


def test_status_flow_draft_active_closed(service, store, nominees, fixed_now):
    vote_id = service.create_vote(current_role=Role.ADMIN, creator_id="adm", title="评选", candidate_ids=nominees)

    with pytest.raises(ValidationError):
        service.cast(current_role=Role.TOWN_STAFF, voter_id="u1", vote_id=vote_id, candidate_ids=[nominees[0]], now=fixed_now)

    opened = service.set_status(current_role=Role.ADMIN, user_id="adm", vote_id=vote_id, status=VoteStatus.ACTIVE)
    assert opened.status == VoteStatus.ACTIVE
    service.cast(current_role=Role.TOWN_STAFF, voter_id="u1", vote_id=vote_id, candidate_ids=[nominees[0]], now=fixed_now)

    closed = service.set_status(current_role=Role.ADMIN, user_id="adm", vote_id=vote_id, status=VoteStatus.CLOSED)
    assert closed.status == VoteStatus.CLOSED
    with pytest.raises(ValidationError):
        service.set_status(current_role=Role.ADMIN, user_id="adm", vote_id=vote_id, status=VoteStatus.ACTIVE)


def test_draft_cannot_jump_to_closed(service, nominees):
    vote_id = service.create_vote(current_role=Role.ADMIN, creator_id="adm", title="评选", candidate_ids=nominees)

    with pytest.raises(ValidationError):
        service.set_status(current_role=Role.ADMIN, user_id="adm", vote_id=vote_id, status=VoteStatus.CLOSED)


def test_only_drafts_can_be_edited(service, store, nominees):
    vote_id = service.create_vote(current_role=Role.ADMIN, creator_id="adm", title="评选", candidate_ids=nominees)

    edited = service.update_vote(
        current_role=Role.ADMIN, user_id="adm", vote_id=vote_id, title="年度评选",
        candidate_ids=nominees[:2], max_votes_per_user=2, show_results=True,
    )
    assert edited.title == "年度评选"
    assert edited.candidate_ids() == frozenset(nominees[:2])
    assert edited.show_results is True

    service.set_status(current_role=Role.ADMIN, user_id="adm", vote_id=vote_id, status=VoteStatus.ACTIVE)
    with pytest.raises(ValidationError):
        service.update_vote(current_role=Role.ADMIN, user_id="adm", vote_id=vote_id, title="x", candidate_ids=nominees)
    assert store.tables[Collection.VOTES][vote_id]["title"] == "年度评选"
