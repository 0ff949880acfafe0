from __future__ import annotations

import logging
import math
import threading
import weakref
from dataclasses import replace

from ..core.constants import MIN_TOTAL_SCORE
from ..core.exceptions import ConcurrentDeductionConflict, DuplicateRecordError, ValidationError
from .model import ApplyDeduction, ScoreAdjustment
from .repository import ScoreRepository

logger = logging.getLogger(__name__)


class ScoreLedger:
    """Single serialization point for attendance score changes.

    Commands for the same user run one at a time (per-user lock); the repository
    subtracts from the current stored value inside a transaction, so concurrent
    approvals accumulate instead of overwriting each other. Replaying a key
    returns the journaled result without touching the score again.
    """

    def __init__(self, scores: ScoreRepository, *, floor: float = MIN_TOTAL_SCORE):
        self._scores = scores
        self._floor = floor
        # an entry lives only while some apply() holds its lock
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    @staticmethod
    def _check_replay(existing: ScoreAdjustment, command: ApplyDeduction) -> ScoreAdjustment:
        if existing.user_id != command.user_id or not math.isclose(existing.amount, command.amount):
            raise ConcurrentDeductionConflict(
                f"idempotency key {command.idempotency_key} already used for a different adjustment"
            )
        logger.info("score adjustment %s replayed, score stays %s", command.idempotency_key, existing.score_after)
        return replace(existing, replayed=True)

    def apply(self, command: ApplyDeduction) -> ScoreAdjustment:
        if not command.idempotency_key:
            raise ValidationError("缺少操作标识")
        if math.isnan(command.amount) or command.amount < 0:
            raise ValidationError("扣分必须为非负数")

        with self._lock_for(command.user_id):
            existing = self._scores.get_adjustment(command.idempotency_key)
            if existing is not None:
                return self._check_replay(existing, command)

            try:
                adjustment = self._scores.apply_adjustment(command, floor=self._floor)
            except DuplicateRecordError:
                # another process journaled the key between our check and our write
                existing = self._scores.get_adjustment(command.idempotency_key)
                if existing is None:
                    raise
                return self._check_replay(existing, command)

        logger.info(
            "score adjusted user=%s key=%s %s -> %s (%s)",
            adjustment.user_id, adjustment.idempotency_key, adjustment.score_before, adjustment.score_after, adjustment.reason,
        )
        return adjustment
