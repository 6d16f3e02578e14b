"""
Simulation-wide integration preferences: solver kind and nominal time step.

Listeners are plain callables receiving (preferences, changed_field_name).
Models subscribe on construction and reconfigure their solver on change.
Bound methods are held through weak references, so a model that is dropped
without dispose() stops being notified once it is garbage collected.
"""

import logging
import weakref
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from mechsim.io.serializers import load_config, save_config
from mechsim.physics.registry import (
    NominalTimeStep,
    SolverType,
    resolve_solver_type,
    resolve_time_step,
)
from mechsim.physics.solvers import check_time_step

logger = logging.getLogger(__name__)

Listener = Callable[["Preferences", str], None]

SOLVER_TYPE = "solver_type"
FIXED_TIME_STEP = "fixed_time_step"


class _StrongRef:
    """Same call protocol as a weakref, for plain functions and lambdas."""

    __slots__ = ("listener",)

    def __init__(self, listener: Listener) -> None:
        self.listener = listener

    def __call__(self) -> Listener:
        return self.listener

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _StrongRef) and self.listener == other.listener


def _reference(listener: Listener) -> Callable[[], Optional[Listener]]:
    if hasattr(listener, "__self__") and hasattr(listener, "__func__"):
        return weakref.WeakMethod(listener)
    return _StrongRef(listener)


class Preferences:
    """
    Externally owned settings a model follows.

    Args:
        solver_type: integration method (SolverType or its name).
        fixed_time_step: sub-step size, seconds or NominalTimeStep.
    """

    def __init__(
        self,
        solver_type: Union[SolverType, str] = SolverType.RK4,
        fixed_time_step: Union[NominalTimeStep, float, str] = NominalTimeStep.DEFAULT,
    ) -> None:
        self._solver_type = resolve_solver_type(solver_type)
        self._fixed_time_step = check_time_step(resolve_time_step(fixed_time_step))
        self._listeners: List[Callable[[], Optional[Listener]]] = []

    @property
    def solver_type(self) -> SolverType:
        return self._solver_type

    @solver_type.setter
    def solver_type(self, value: Union[SolverType, str]) -> None:
        kind = resolve_solver_type(value)
        if kind is self._solver_type:
            return
        self._solver_type = kind
        self._notify(SOLVER_TYPE)

    @property
    def fixed_time_step(self) -> float:
        return self._fixed_time_step

    @fixed_time_step.setter
    def fixed_time_step(self, value: Union[NominalTimeStep, float, str]) -> None:
        dt = check_time_step(resolve_time_step(value))
        if dt == self._fixed_time_step:
            return
        self._fixed_time_step = dt
        self._notify(FIXED_TIME_STEP)

    def subscribe(self, listener: Listener) -> None:
        ref = _reference(listener)
        if ref not in self._listeners:
            self._listeners.append(ref)

    def unsubscribe(self, listener: Listener) -> None:
        ref = _reference(listener)
        if ref in self._listeners:
            self._listeners.remove(ref)

    def _live_listeners(self) -> List[Listener]:
        """Resolve the references, dropping those whose owner was collected."""
        self._listeners = [ref for ref in self._listeners if ref() is not None]
        return [ref() for ref in self._listeners]

    @property
    def n_listeners(self) -> int:
        return len(self._live_listeners())

    def _notify(self, field: str) -> None:
        listeners = self._live_listeners()
        logger.debug("preference %s changed, notifying %d listener(s)", field, len(listeners))
        for listener in listeners:
            listener(self, field)

    def to_dict(self) -> Dict[str, Any]:
        return {SOLVER_TYPE: self._solver_type.value, FIXED_TIME_STEP: self._fixed_time_step}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preferences":
        """Build from a dict as written by to_dict(); missing keys take defaults."""
        unknown = set(data) - {SOLVER_TYPE, FIXED_TIME_STEP}
        if unknown:
            raise ValueError(f"unknown preference keys: {sorted(unknown)}")
        return cls(
            solver_type=data.get(SOLVER_TYPE, SolverType.RK4),
            fixed_time_step=data.get(FIXED_TIME_STEP, NominalTimeStep.DEFAULT),
        )

    def update(self, data: Dict[str, Any]) -> None:
        """Apply the keys present in data, notifying listeners for each change."""
        if SOLVER_TYPE in data:
            self.solver_type = data[SOLVER_TYPE]
        if FIXED_TIME_STEP in data:
            self.fixed_time_step = data[FIXED_TIME_STEP]

    def save(self, path: Union[str, Path]) -> None:
        """Write the preferences as JSON."""
        save_config(self.to_dict(), path)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Preferences":
        """Read preferences written by save()."""
        return cls.from_dict(load_config(path))

    def __repr__(self) -> str:
        return f"Preferences(solver_type={self._solver_type.name}, fixed_time_step={self._fixed_time_step!r})"
