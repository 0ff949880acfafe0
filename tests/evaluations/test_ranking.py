from __future__ import annotations

from src.ruralwork.ruralwork.core.enums import Dimension, Role
from src.ruralwork.ruralwork.evaluations.model import AggregateSummary, EvaluationRecord
from src.ruralwork.ruralwork.evaluations.ranking import (
    completion_stats,
    dimension_overview,
    rank,
    rollup_by_department,
    score_distribution,
    top_performers,
)

_ids = iter(range(1, 10_000))


def summary(user_id: str, total: float) -> AggregateSummary:
    return AggregateSummary(
        user_id=user_id,
        name=user_id,
        department=None,
        position=None,
        phone=None,
        score_de=0,
        score_neng=0,
        score_qin=0,
        score_ji=0,
        score_lian=0,
        total_average=total,
        evaluation_count=1,
    )


def rec(evaluatee: str, total: float, *, completed: bool = True) -> EvaluationRecord:
    per = total / 5
    return EvaluationRecord(
        id=str(next(_ids)),
        evaluator_id="x",
        evaluatee_id=evaluatee,
        evaluation_year="2026",
        score_de=per,
        score_neng=per,
        score_qin=per,
        score_ji=per,
        score_lian=per,
        is_completed=completed,
    )


def test_rank_is_stable_for_ties():
    ranked = rank([summary("A", 95), summary("B", 95), summary("C", 80)])

    assert [(s.user_id, s.rank) for s in ranked] == [("A", 1), ("B", 2), ("C", 3)]


def test_rank_orders_by_total_average_desc():
    ranked = rank([summary("low", 60), summary("high", 99), summary("mid", 75)])

    assert [s.user_id for s in ranked] == ["high", "mid", "low"]


def test_top_performers_limits_result():
    summaries = [summary(str(i), float(i)) for i in range(15)]

    top = top_performers(summaries)

    assert len(top) == 10
    assert top[0].user_id == "14"


def test_department_rollup_counts_distinct_participants(make_user):
    users = [make_user("u1", department="党政办"), make_user("u2", department="党政办")]
    records = [rec("u1", 90)] * 3 + [rec("u2", 80)] * 3

    (rollup,) = rollup_by_department(records, users)

    assert rollup.department == "党政办"
    assert rollup.participant_count == 2
    assert rollup.evaluation_count == 6
    assert rollup.average_score == 85.0
    assert rollup.rank == 1


def test_department_rollup_ranks_and_groups_unassigned(make_user):
    users = [
        make_user("u1", department="A"),
        make_user("u2", department="B"),
        make_user("u3"),
        make_user("admin", role=Role.ADMIN, department="A"),
    ]
    records = [rec("u1", 70), rec("u2", 90), rec("u3", 80), rec("admin", 100)]

    rollups = rollup_by_department(records, users)

    assert [(r.department, r.rank) for r in rollups] == [("B", 1), ("-", 2), ("A", 3)]
    assert rollups[2].average_score == 70.0


def test_score_distribution_bucket_boundaries():
    records = [rec("u", 90), rec("u", 89.9), rec("u", 80), rec("u", 60), rec("u", 0), rec("u", 95, completed=False)]

    buckets = {b.label: b.count for b in score_distribution(records)}

    assert buckets == {"90-100": 1, "80-89": 2, "70-79": 0, "60-69": 1, "below 60": 1}


def test_score_distribution_always_has_all_buckets():
    buckets = score_distribution([])

    assert [b.label for b in buckets] == ["90-100", "80-89", "70-79", "60-69", "below 60"]
    assert all(b.count == 0 for b in buckets)


def test_dimension_overview_averages_completed_records():
    stats = dimension_overview([rec("u", 100), rec("u", 50), rec("u", 0, completed=False)])

    assert [s.dimension for s in stats] == list(Dimension)
    assert stats[0].score == 15.0
    assert stats[0].label == "德"
    assert stats[0].full_score == 20.0


def test_dimension_overview_empty_is_zero():
    assert all(s.score == 0.0 for s in dimension_overview([]))


def test_completion_stats(make_user):
    users = [make_user("a", role=Role.ADMIN), make_user("1"), make_user("2"), make_user("3")]

    stats = completion_stats([rec("1", 80), rec("2", 80), rec("3", 80, completed=False)], users)

    assert stats.participants == 3
    assert stats.possible == 6
    assert stats.completed == 2
    assert stats.completion_rate == 33.3


def test_completion_stats_guards_zero_denominator(make_user):
    stats = completion_stats([], [make_user("1")])

    assert stats.possible == 0
    assert stats.completion_rate == 0.0
