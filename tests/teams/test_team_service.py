from __future__ import annotations

from datetime import datetime

import pytest

from src.ruralwork.ruralwork.common.audit import AuditLog
from src.ruralwork.ruralwork.core.enums import ActivityStatus, Role, TeamDimension
from src.ruralwork.ruralwork.core.exceptions import AuthorizationError, InvalidScoreRangeError, ValidationError
from src.ruralwork.ruralwork.store.repository import Collection
from src.ruralwork.ruralwork.teams.model import TeamEvaluation
from src.ruralwork.ruralwork.teams.service import TeamEvaluationService, overall_average, summarize_teams
from src.ruralwork.ruralwork.teams.store_team_repository import (
    StoreTeamActivityRepository,
    StoreTeamEvaluationRepository,
)
from src.ruralwork.ruralwork.users.store_user_repository import StoreUserRepository

JUNE = (datetime(2026, 6, 1), datetime(2026, 6, 30, 23, 59))


def team_scores(value):
    return {d.value: value for d in TeamDimension}


@pytest.fixture
def service(store):
    return TeamEvaluationService(
        StoreTeamEvaluationRepository(store),
        StoreUserRepository(store),
        StoreTeamActivityRepository(store),
        audit=AuditLog(store),
    )


@pytest.fixture(autouse=True)
def june_activities(store):
    for activity_id in ("a1", "a2"):
        store.insert(
            Collection.TEAM_ACTIVITIES,
            {"id": activity_id, "title": f"六月评分{activity_id}", "status": "active", "start_time": JUNE[0], "end_time": JUNE[1]},
        )


@pytest.fixture
def rate(service, fixed_now):
    def _rate(**kwargs):
        kwargs.setdefault("current_role", Role.ADMIN)
        kwargs.setdefault("evaluator_id", "adm")
        kwargs.setdefault("activity_id", "a1")
        return service.submit(now=fixed_now, **kwargs)

    return _rate


def test_submit_requires_team_evaluate(rate, store):
    team = store.add_user("一队", role=Role.WORK_TEAM)

    with pytest.raises(AuthorizationError):
        rate(current_role=Role.TOWN_STAFF, evaluator_id="x", team_id=team, scores=team_scores(10))


def test_submit_stores_total_and_audits(rate, store):
    team = store.add_user("一队", role=Role.WORK_TEAM)
    rater = store.add_user("站员", role=Role.STATION_STAFF)

    evaluation_id = rate(
        current_role=Role.STATION_STAFF, evaluator_id=rater, team_id=team,
        scores=team_scores(15), comment="  认真负责 ",
    )

    row = store.tables[Collection.TEAM_EVALUATIONS][evaluation_id]
    assert row["total_score"] == 75
    assert row["comment"] == "认真负责"
    assert [r["action"] for r in store.tables[Collection.SYSTEM_LOGS].values()] == ["team_evaluate"]


def test_missing_dimension_counts_as_zero(rate, store):
    team = store.add_user("一队", role=Role.WORK_TEAM)

    evaluation_id = rate(team_id=team, scores={"work_quality_score": 20})

    assert store.tables[Collection.TEAM_EVALUATIONS][evaluation_id]["total_score"] == 20


def test_out_of_range_score_rejected(rate, store):
    team = store.add_user("一队", role=Role.WORK_TEAM)

    with pytest.raises(InvalidScoreRangeError):
        rate(team_id=team, scores={**team_scores(10), "innovation_score": 21})
    assert store.tables[Collection.TEAM_EVALUATIONS] == {}


def test_blank_activity_rejected(rate, store):
    team = store.add_user("一队", role=Role.WORK_TEAM)

    with pytest.raises(ValidationError):
        rate(activity_id=" ", team_id=team, scores=team_scores(10))


def test_unknown_activity_rejected(rate, store):
    team = store.add_user("一队", role=Role.WORK_TEAM)

    with pytest.raises(ValidationError, match="评分活动不存在"):
        rate(activity_id="a9", team_id=team, scores=team_scores(10))


@pytest.mark.parametrize("now", [datetime(2026, 5, 31, 23, 0), datetime(2026, 7, 1, 8, 0)])
def test_rating_outside_activity_window_rejected(service, store, now):
    team = store.add_user("一队", role=Role.WORK_TEAM)

    with pytest.raises(ValidationError, match="未开始或已结束"):
        service.submit(
            current_role=Role.ADMIN, evaluator_id="adm", activity_id="a1", team_id=team,
            scores=team_scores(10), now=now,
        )


@pytest.mark.parametrize("status", [ActivityStatus.COMPLETED, ActivityStatus.CANCELLED])
def test_rating_closed_activity_rejected(service, rate, store, status):
    team = store.add_user("一队", role=Role.WORK_TEAM)
    service.set_activity_status(current_role=Role.ADMIN, user_id="adm", activity_id="a1", status=status)

    with pytest.raises(ValidationError, match="未开始或已结束"):
        rate(team_id=team, scores=team_scores(10))
    assert store.tables[Collection.TEAM_EVALUATIONS] == {}


def test_non_team_user_rejected(rate, store):
    staff = store.add_user("张三")

    with pytest.raises(ValidationError, match="工作队不存在"):
        rate(team_id=staff, scores=team_scores(10))


def test_second_rating_of_same_team_rejected(rate, store):
    team = store.add_user("一队", role=Role.WORK_TEAM)
    rate(team_id=team, scores=team_scores(10))

    with pytest.raises(ValidationError, match="已对该工作队评分"):
        rate(team_id=team, scores=team_scores(12))

    # another activity is a fresh rating
    rate(activity_id="a2", team_id=team, scores=team_scores(12))
    assert len(store.tables[Collection.TEAM_EVALUATIONS]) == 2


def test_create_activity_starts_active(service, store):
    activity_id = service.create_activity(
        current_role=Role.ADMIN, creator_id="adm", title=" 七月评分 ",
        start_time=datetime(2026, 7, 1), end_time=datetime(2026, 7, 31), description="季度考核",
    )

    activity = service.list_activities(status=ActivityStatus.ACTIVE)[0]
    assert activity.id == activity_id
    assert (activity.title, activity.description, activity.created_by) == ("七月评分", "季度考核", "adm")
    assert store.tables[Collection.TEAM_ACTIVITIES][activity_id]["status"] == "active"
    assert [r["action"] for r in store.tables[Collection.SYSTEM_LOGS].values()] == ["create_team_activity"]


def test_create_activity_requires_management_capability(service):
    with pytest.raises(AuthorizationError):
        service.create_activity(
            current_role=Role.STATION_STAFF, creator_id="s", title="评分",
            start_time=datetime(2026, 7, 1), end_time=datetime(2026, 7, 31),
        )


@pytest.mark.parametrize(
    "title, start, end",
    [
        ("  ", datetime(2026, 7, 1), datetime(2026, 7, 31)),
        ("评分", None, datetime(2026, 7, 31)),
        ("评分", datetime(2026, 7, 1), None),
        ("评分", datetime(2026, 7, 31), datetime(2026, 7, 1)),
    ],
)
def test_create_activity_validation(service, store, title, start, end):
    with pytest.raises(ValidationError):
        service.create_activity(current_role=Role.ADMIN, creator_id="adm", title=title, start_time=start, end_time=end)
    assert len(store.tables[Collection.TEAM_ACTIVITIES]) == 2


def test_completed_activity_is_final(service):
    done = service.set_activity_status(
        current_role=Role.ADMIN, user_id="adm", activity_id="a1", status=ActivityStatus.COMPLETED
    )
    assert done.status == ActivityStatus.COMPLETED

    with pytest.raises(ValidationError):
        service.set_activity_status(
            current_role=Role.ADMIN, user_id="adm", activity_id="a1", status=ActivityStatus.ACTIVE
        )
    with pytest.raises(ValidationError, match="只能修改进行中的活动"):
        service.update_activity(
            current_role=Role.ADMIN, user_id="adm", activity_id="a1", title="改名",
            start_time=JUNE[0], end_time=JUNE[1],
        )
    assert [a.id for a in service.list_activities(status=ActivityStatus.ACTIVE)] == ["a2"]


def test_update_activity_moves_window(service, rate, store):
    team = store.add_user("一队", role=Role.WORK_TEAM)
    service.update_activity(
        current_role=Role.ADMIN, user_id="adm", activity_id="a1", title="七月评分",
        start_time=datetime(2026, 7, 1), end_time=datetime(2026, 7, 31),
    )

    with pytest.raises(ValidationError, match="未开始或已结束"):
        rate(team_id=team, scores=team_scores(10))


def test_summary_ranks_teams_and_averages(service, rate, store):
    first = store.add_user("一队", role=Role.WORK_TEAM)
    second = store.add_user("二队", role=Role.WORK_TEAM)
    for evaluator, team, value in [("e1", first, 12), ("e2", first, 14), ("e1", second, 18)]:
        rate(evaluator_id=evaluator, team_id=team, scores=team_scores(value))

    summaries, average = service.summary(current_role=Role.ADMIN)

    assert [(s.team_name, s.rank, s.total_average, s.evaluation_count) for s in summaries] == [
        ("二队", 1, 90.0, 1),
        ("一队", 2, 65.0, 2),
    ]
    assert summaries[1].dimension_averages["cooperation_score"] == 13.0
    assert average == 73.3


def test_summary_filters_by_activity(service, rate, store):
    team = store.add_user("一队", role=Role.WORK_TEAM)
    rate(evaluator_id="e1", team_id=team, scores=team_scores(10))
    rate(evaluator_id="e1", activity_id="a2", team_id=team, scores=team_scores(20))

    summaries, average = service.summary(current_role=Role.ADMIN, activity_id="a2")

    assert [s.evaluation_count for s in summaries] == [1]
    assert average == 100.0


def test_summary_requires_statistics_capability(service):
    with pytest.raises(AuthorizationError):
        service.summary(current_role=Role.STATION_STAFF)


def test_unknown_team_falls_back_to_id():
    evaluation = TeamEvaluation(id="1", activity_id="a", evaluator_id="e", team_id="t9", **team_scores(10))

    (summary,) = summarize_teams([evaluation], teams=[])

    assert summary.team_name == "t9"
    assert summary.rank == 1


def test_overall_average_of_nothing_is_zero():
    assert overall_average([]) == 0
    assert summarize_teams([], teams=[]) == []
