"""Base class for models governed by an ODE dx/dt = f(x, t; params)."""

import logging
import math
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from mechsim.core.component import SimulationComponent
from mechsim.core.signals import StateComponent, check_components, component_index
from mechsim.exceptions import DivergedError
from mechsim.physics.derivatives import bind
from mechsim.physics.preferences import FIXED_TIME_STEP, SOLVER_TYPE, Preferences
from mechsim.physics.registry import SolverType, create_solver, resolve_solver_type, solver_type_of
from mechsim.physics.solvers import ODESolver

logger = logging.getLogger(__name__)

# Largest |dt| a single step() accepts before capping (after a paused or hidden tab).
MAX_DT = 0.1


class TimeSpeed(Enum):
    """Playback speed multipliers applied to non-forced steps."""

    SLOW = 0.5
    NORMAL = 1.0
    FAST = 2.0


class state_value:
    """Descriptor exposing one state vector entry as a named float attribute."""

    def __init__(self, index: int) -> None:
        self.index = index

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, objtype: Optional[type] = None) -> Any:
        if obj is None:
            return self
        return float(obj._state[self.index])

    def __set__(self, obj: Any, value: float) -> None:
        obj.set_state_value(self.index, value)


class parameter:
    """Descriptor exposing one field of the model's parameter snapshot."""

    def __init__(self, field: Optional[str] = None) -> None:
        self.field = field

    def __set_name__(self, owner: type, name: str) -> None:
        if self.field is None:
            self.field = name

    def __get__(self, obj: Any, objtype: Optional[type] = None) -> Any:
        if obj is None:
            return self
        return getattr(obj._parameters, self.field)

    def __set__(self, obj: Any, value: float) -> None:
        obj.set_parameters(**{self.field: value})


class ODEModel(SimulationComponent):
    """
    Physical model advanced by a swappable solver.

    Owns the state vector, an immutable parameter snapshot, the simulated time,
    play/pause state, time speed and the active solver. Subclasses declare:
      - rhs: pure function rhs(x, t, params) -> dx/dt
      - parameters_class: frozen dataclass of parameters
      - state_components: names/units of the state entries
      - default_state: construction-time state
      - position_indices / velocity_indices: phase-space split
    and implement kinetic_energy / potential_energy.
    """

    rhs: Callable[..., np.ndarray]
    parameters_class: type
    state_components: Tuple[StateComponent, ...] = ()
    default_state: Tuple[float, ...] = ()
    position_indices: Tuple[int, ...] = ()
    velocity_indices: Tuple[int, ...] = ()

    def __init__(
        self,
        parameters: Optional[Any] = None,
        state: Optional[Sequence[float]] = None,
        preferences: Optional[Preferences] = None,
        solver: Optional[ODESolver] = None,
        max_dt: Optional[float] = MAX_DT,
    ) -> None:
        """
        Args:
            parameters: parameter dataclass instance (default: class defaults).
            state: initial state (default: default_state); also the reset target.
            preferences: shared Preferences to follow (default: a private one).
            solver: explicit solver; default is built from preferences.
            max_dt: cap on |dt| per step(); None disables capping.
        """
        check_components(self.state_components)
        if parameters is None:
            parameters = self.parameters_class()
        elif not isinstance(parameters, self.parameters_class):
            raise TypeError(f"parameters must be {self.parameters_class.__name__}, got {type(parameters).__name__}")
        self._default_parameters = parameters
        self._default_state = self._validated_state(self.default_state if state is None else state)

        self._parameters = self._default_parameters
        self._state = self._default_state.copy()
        self._time = 0.0
        self._is_playing = True
        self._time_speed = TimeSpeed.NORMAL
        self.max_dt = max_dt
        self.diverged = False

        self.preferences = preferences if preferences is not None else Preferences()
        if solver is None:
            solver = create_solver(self.preferences.solver_type, self.preferences.fixed_time_step)
        self._solver = solver
        self.preferences.subscribe(self._on_preference_change)

    # --- state ---

    @property
    def state_size(self) -> int:
        return len(self.state_components)

    @property
    def state(self) -> np.ndarray:
        """Copy of the current state vector."""
        return self._state.copy()

    def _validated_state(self, values: Sequence[float]) -> np.ndarray:
        x = np.array(values, dtype=float).ravel()
        if x.size != self.state_size:
            raise ValueError(f"State vector length mismatch: expected {self.state_size}, got {x.size}")
        bad = np.flatnonzero(~np.isfinite(x))
        if bad.size:
            i = int(bad[0])
            raise ValueError(f"Invalid state value at index {i}: {x[i]} (must be a finite number)")
        return x

    def set_state(self, values: Sequence[float]) -> None:
        """Overwrite the whole state vector (same length, finite values)."""
        self._state = self._validated_state(values)
        self.diverged = False

    def set_state_value(self, index: int, value: float) -> None:
        x = self._state.copy()
        x[index] = value
        self.set_state(x)

    def named_state(self) -> Dict[str, float]:
        """State entries keyed by component name."""
        return {c.name: float(self._state[c.index]) for c in self.state_components}

    def drag(self, name: str, value: float) -> None:
        """
        Put a coordinate at value and hold it still: the paired velocity is
        zeroed. Used by drag interactions.
        """
        index = component_index(self.state_components)[name]
        if index not in self.position_indices:
            raise ValueError(f"{name} is not a position coordinate")
        x = self._state.copy()
        x[index] = value
        x[self.velocity_indices[self.position_indices.index(index)]] = 0.0
        self.set_state(x)

    @property
    def layout(self) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
        """(position_indices, velocity_indices) for symplectic solvers."""
        return self.position_indices, self.velocity_indices

    # --- parameters ---

    @property
    def parameters(self) -> Any:
        """Current (immutable) parameter snapshot."""
        return self._parameters

    def set_parameters(self, **changes: float) -> None:
        """
        Replace some parameters.

        Raises:
            InvalidParameterError: a value is out of range; nothing changes.
            TypeError: unknown parameter name.
        """
        self._parameters = replace(self._parameters, **changes)

    def derivative_function(self) -> Callable[[np.ndarray, float], np.ndarray]:
        """rhs bound to the current parameter snapshot: f(x, t)."""
        return bind(type(self).rhs, self._parameters)

    def derivatives(self) -> np.ndarray:
        """dx/dt at the current state and time."""
        return self.derivative_function()(self._state.copy(), self._time)

    # --- time control ---

    @property
    def time(self) -> float:
        return self._time

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    def play(self) -> None:
        self._is_playing = True

    def pause(self) -> None:
        self._is_playing = False

    @property
    def time_speed(self) -> TimeSpeed:
        return self._time_speed

    @time_speed.setter
    def time_speed(self, value: Union[TimeSpeed, str]) -> None:
        self._time_speed = value if isinstance(value, TimeSpeed) else TimeSpeed[str(value).upper()]

    def step(self, dt: float, force_step: bool = False) -> float:
        """
        Advance simulated time by dt (negative dt steps backward).

        Paused models ignore the call unless force_step is set. |dt| is capped
        at max_dt; non-forced steps are scaled by the time speed.

        Raises:
            DivergedError: integration produced non-finite values; state and
                time keep their pre-step values and diverged is set.
        """
        if not self._is_playing and not force_step:
            return self._time
        dt = float(dt)
        if not math.isfinite(dt):
            raise ValueError(f"dt must be finite, got {dt!r}")
        if self.max_dt is not None and abs(dt) > self.max_dt:
            logger.debug("capping dt %.4g to %.4g", dt, self.max_dt)
            dt = math.copysign(self.max_dt, dt)
        if not force_step:
            dt *= self._time_speed.value
        if dt == 0.0:
            return self._time

        x = self._state.copy()
        try:
            new_time = self._solver.step(x, self.derivative_function(), self._time, dt, layout=self.layout)
        except DivergedError as exc:
            self.diverged = True
            logger.warning("%s diverged with %s at t=%.6g", type(self).__name__, self._solver.name, exc.time)
            raise
        self._state = x
        self._time = new_time
        return new_time

    def reset(self) -> None:
        """Restore state, parameters and time controls; keep the solver."""
        self._state = self._default_state.copy()
        self._parameters = self._default_parameters
        self._time = 0.0
        self._is_playing = True
        self._time_speed = TimeSpeed.NORMAL
        self.diverged = False
        logger.info("%s reset", type(self).__name__)

    # --- solver ---

    @property
    def solver(self) -> ODESolver:
        return self._solver

    @property
    def solver_type(self) -> SolverType:
        return solver_type_of(self._solver)

    def set_solver(self, solver: ODESolver) -> None:
        """Swap the active solver. The state vector is not touched."""
        logger.info("%s: solver %s -> %s", type(self).__name__, self._solver.name, solver.name)
        self._solver = solver

    def set_solver_type(self, kind: Union[SolverType, str]) -> None:
        """Swap to a new solver of the given kind with the current fixed step."""
        self.set_solver(create_solver(resolve_solver_type(kind), self._solver.fixed_time_step))

    def set_physics_time_step(self, dt: float) -> None:
        self._solver.set_fixed_time_step(dt)

    def get_physics_time_step(self) -> float:
        return self._solver.get_fixed_time_step()

    def _on_preference_change(self, preferences: Preferences, field: str) -> None:
        if field == SOLVER_TYPE:
            self.set_solver(create_solver(preferences.solver_type, preferences.fixed_time_step))
        elif field == FIXED_TIME_STEP:
            self._solver.set_fixed_time_step(preferences.fixed_time_step)

    def dispose(self) -> None:
        """Stop following the preferences (otherwise dropped when the model is collected)."""
        self.preferences.unsubscribe(self._on_preference_change)

    # --- energies ---

    @property
    def kinetic_energy(self) -> float:
        raise NotImplementedError("Subclasses must implement kinetic_energy.")

    @property
    def potential_energy(self) -> float:
        raise NotImplementedError("Subclasses must implement potential_energy.")

    @property
    def total_energy(self) -> float:
        return self.kinetic_energy + self.potential_energy

    # --- snapshots ---

    def state_dict(self) -> Dict[str, Any]:
        return {
            "state": self._state.copy(),
            "time": self._time,
            "parameters": self._parameters.to_dict(),
            "is_playing": self._is_playing,
            "time_speed": self._time_speed.name,
        }

    def load_state_dict(self, snapshot: Dict[str, Any]) -> None:
        """Restore a snapshot taken with state_dict() (exact undo)."""
        parameters = self.parameters_class(**snapshot["parameters"])
        state = self._validated_state(snapshot["state"])
        self._parameters = parameters
        self._state = state
        self._time = float(snapshot["time"])
        self._is_playing = bool(snapshot.get("is_playing", self._is_playing))
        self.time_speed = snapshot.get("time_speed", self._time_speed)
        self.diverged = False

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v:.4g}" for k, v in self.named_state().items())
        return f"{type(self).__name__}(t={self._time:.4g}, {values})"
