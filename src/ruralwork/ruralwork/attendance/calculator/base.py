from __future__ import annotations

from abc import ABC, abstractmethod

from ...leaves.model import LeaveRequest


class DeductionPolicy(ABC):
    """Policy interface: how many points a leave request costs (Strategy Pattern)."""

    @abstractmethod
    def deduction_for(self, leave: LeaveRequest) -> float:
        raise NotImplementedError
