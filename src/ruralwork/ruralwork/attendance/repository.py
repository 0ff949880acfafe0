from __future__ import annotations

from typing import Optional, Protocol

from .model import ApplyDeduction, ScoreAdjustment


class ScoreRepository(Protocol):
    """Persistence of ``users.total_score`` plus the adjustment journal."""

    def get_adjustment(self, idempotency_key: str) -> Optional[ScoreAdjustment]:
        raise NotImplementedError

    def apply_adjustment(self, command: ApplyDeduction, *, floor: float) -> ScoreAdjustment:
        """Atomically subtract from the *current* stored score and journal the key.

        Must read and write the score in one transaction (never "set to a value
        read earlier"). Raises DuplicateRecordError if the key was journaled
        concurrently and MissingReferenceError if the user does not exist.
        """

        raise NotImplementedError
