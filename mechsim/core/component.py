"""Base interface for steppable simulation components."""

from abc import ABC, abstractmethod
from typing import Any, Dict


class SimulationComponent(ABC):
    """
    Interface shared by everything an animation driver can advance:
    the physical models and anything composed from them.
    """

    @abstractmethod
    def reset(self) -> None:
        """Restore construction-time defaults."""
        pass

    @abstractmethod
    def step(self, dt: float, force_step: bool = False) -> float:
        """
        Advance simulated time by dt.

        Args:
            dt: time delta in seconds (may be negative to step backward)
            force_step: step even when paused (manual single-frame stepping)

        Returns:
            The simulated time after the step.
        """
        pass

    def state_dict(self) -> Dict[str, Any]:
        """
        Internal state of the component as plain values, for in-memory snapshots.
        Override for stateful components.
        """
        return {}
