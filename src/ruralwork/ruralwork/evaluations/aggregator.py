"""Annual peer-evaluation aggregation.

``aggregate`` is a pure function of the evaluation records and the user
directory: the same inputs always produce the same summaries.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from ..core.enums import Dimension
from ..users.model import User
from .accumulator import ScoreAccumulator
from .model import AggregateSummary, EvaluationRecord

logger = logging.getLogger(__name__)

DIMENSIONS = tuple(d.value for d in Dimension)


def index_users(users: Iterable[User]) -> dict[str, User]:
    return {u.id: u for u in users}


def resolve_evaluatee(record: EvaluationRecord, user_map: Mapping[str, User]) -> Optional[User]:
    """The rated user if the record takes part in rollups, else None.

    Drafts, unknown evaluatees and admin evaluatees never take part.
    """

    if not record.is_completed:
        return None
    user = user_map.get(record.evaluatee_id)
    if user is None:
        logger.debug("skipping evaluation %s: evaluatee %s not found", record.id, record.evaluatee_id)
        return None
    if user.is_admin:
        return None
    return user


def aggregate(records: Iterable[EvaluationRecord], users: Iterable[User]) -> dict[str, AggregateSummary]:
    """Per-evaluatee averages keyed by user id, in first-seen order.

    Evaluatees without a completed record are absent (no zero entries).
    """

    user_map = index_users(users)
    accumulators: dict[str, ScoreAccumulator] = {}

    for record in records:
        user = resolve_evaluatee(record, user_map)
        if user is None:
            continue
        acc = accumulators.get(user.id)
        if acc is None:
            acc = ScoreAccumulator(DIMENSIONS)
            accumulators[user.id] = acc
        acc.add(record.scores)

    out: dict[str, AggregateSummary] = {}
    for user_id, acc in accumulators.items():
        user = user_map[user_id]
        averages = acc.averages()
        out[user_id] = AggregateSummary(
            user_id=user.id,
            name=user.name,
            department=user.department,
            position=user.position,
            phone=user.phone,
            score_de=averages[Dimension.DE.value],
            score_neng=averages[Dimension.NENG.value],
            score_qin=averages[Dimension.QIN.value],
            score_ji=averages[Dimension.JI.value],
            score_lian=averages[Dimension.LIAN.value],
            total_average=acc.total_average(),
            evaluation_count=acc.count,
        )
    return out
