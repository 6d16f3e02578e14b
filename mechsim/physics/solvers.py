"""
Sub-stepping ODE solvers.

Every solver advances a state vector in place by an arbitrary time delta dt,
cutting it into ceil(|dt| / h) sub-steps of magnitude min(h, remaining), where
h is the solver's fixed time step. The result therefore does not depend on how
large the caller's dt is (frame-rate independence). Negative dt integrates
backward with negative sub-steps; this is an approximation of the reverse
trajectory, not an exact inverse.

Interface: step(state, derivative, time, dt, layout=None) -> new time.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple

import numpy as np

from mechsim.exceptions import DivergedError
from mechsim.physics.integrators import (
    RHS,
    cash_karp_step,
    dormand_prince87_step,
    euler_heun_step,
    modified_midpoint_step,
    pefrl_step,
    rk4_step,
)

logger = logging.getLogger(__name__)

Layout = Tuple[Sequence[int], Sequence[int]]

DEFAULT_FIXED_TIME_STEP = 0.001

# Relative slack on |dt| / h so that float round-off does not add a sliver step.
_SUBSTEP_RTOL = 1e-9


def check_time_step(dt: float) -> float:
    dt = float(dt)
    if not math.isfinite(dt) or dt <= 0.0:
        raise ValueError(f"fixed time step must be finite and positive, got {dt!r}")
    return dt


def substep_sizes(dt: float, fixed_time_step: float) -> Iterator[float]:
    """
    Yield the signed sub-steps that cover dt.

    There are ceil(|dt| / h) of them; all but the last have magnitude h and the
    last one takes whatever is left, so the magnitudes add up to |dt|.
    """
    span = abs(dt)
    if span == 0.0:
        return
    sign = math.copysign(1.0, dt)
    n = max(1, math.ceil(span / fixed_time_step - _SUBSTEP_RTOL))
    for _ in range(n - 1):
        yield sign * fixed_time_step
    # computed once so round-off does not pile up in the last sub-step
    yield sign * (span - (n - 1) * fixed_time_step)


class ODESolver(ABC):
    """
    Base class for sub-stepping solvers.

    Subclasses implement _advance(), which integrates one sub-step of at most
    the fixed time step. The solver owns no physical state: the same instance
    can advance any state vector handed to step().
    """

    name: str = "solver"
    order: int = 0
    symplectic: bool = False
    adaptive: bool = False

    def __init__(self, fixed_time_step: float = DEFAULT_FIXED_TIME_STEP) -> None:
        self._fixed_time_step = check_time_step(fixed_time_step)

    @property
    def fixed_time_step(self) -> float:
        """Sub-step size h in seconds."""
        return self._fixed_time_step

    @fixed_time_step.setter
    def fixed_time_step(self, dt: float) -> None:
        self.set_fixed_time_step(dt)

    def set_fixed_time_step(self, dt: float) -> None:
        """Change the sub-step size; smaller is more accurate and slower."""
        self._fixed_time_step = check_time_step(dt)

    def get_fixed_time_step(self) -> float:
        return self._fixed_time_step

    def step(
        self,
        state: np.ndarray,
        derivative: RHS,
        time: float,
        dt: float,
        *,
        layout: Optional[Layout] = None,
    ) -> float:
        """
        Advance state (modified in place) from time to time + dt.

        Args:
            state: float state vector, updated in place.
            derivative: right-hand side f(x, t) -> dx/dt.
            time: current simulated time.
            dt: requested delta; may be zero, negative or much larger than h.
            layout: (position_indices, velocity_indices) for solvers that
                split phase space; ignored by the others.

        Returns:
            The new simulated time.

        Raises:
            DivergedError: a sub-step produced a non-finite value. state holds
                the last finite value.
        """
        if not isinstance(state, np.ndarray) or not np.issubdtype(state.dtype, np.floating):
            raise TypeError("state must be a float numpy array (it is updated in place)")
        time = float(time)
        dt = float(dt)
        if not math.isfinite(time) or not math.isfinite(dt):
            raise ValueError(f"time and dt must be finite, got time={time!r}, dt={dt!r}")
        if dt == 0.0:
            return time

        current = time
        for h in substep_sizes(dt, self._fixed_time_step):
            x_next = self._advance(state, derivative, current, h, layout)
            if not np.all(np.isfinite(x_next)):
                raise DivergedError(current, x_next)
            state[:] = x_next
            current += h
        return time + dt

    @abstractmethod
    def _advance(
        self,
        x: np.ndarray,
        f: RHS,
        t: float,
        h: float,
        layout: Optional[Layout],
    ) -> np.ndarray:
        """Integrate one sub-step of signed size h and return the new state."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fixed_time_step={self._fixed_time_step!r})"


class RungeKuttaSolver(ODESolver):
    """Classical Runge-Kutta 4, fixed step. Default general-purpose choice."""

    name = "rk4"
    order = 4

    def _advance(self, x, f, t, h, layout):
        return rk4_step(f, x, t, h)


class ModifiedMidpointSolver(ODESolver):
    """
    Gragg modified midpoint method, order 2.

    Each sub-step is itself split into n_substeps midpoint stages
    (n_substeps + 1 derivative evaluations).
    """

    name = "modified_midpoint"
    order = 2

    def __init__(self, fixed_time_step: float = DEFAULT_FIXED_TIME_STEP, n_substeps: int = 4) -> None:
        super().__init__(fixed_time_step)
        self._n_substeps = 4
        self.set_num_substeps(n_substeps)

    @property
    def n_substeps(self) -> int:
        return self._n_substeps

    def set_num_substeps(self, n: int) -> None:
        """Set the number of midpoint stages per sub-step (at least 2)."""
        self._n_substeps = max(2, int(math.floor(n)))

    def _advance(self, x, f, t, h, layout):
        return modified_midpoint_step(f, x, t, h, self._n_substeps)


class ForestRuthPEFRLSolver(ODESolver):
    """
    Position-extended Forest-Ruth-like integrator (PEFRL), order 4, symplectic.

    Keeps the energy error of conservative systems bounded over long runs
    instead of letting it drift. The state must split into positions and
    velocities with d(position)/dt = velocity; pass layout when they are not
    stored as [positions..., velocities...].
    Kicks read the current velocity, so velocity-dependent forces (damping,
    Coriolis-like terms) reduce the order of the method.
    """

    name = "forest_ruth_pefrl"
    order = 4
    symplectic = True

    def step(self, state, derivative, time, dt, *, layout=None):
        if layout is None and np.size(state) % 2 != 0:
            raise ValueError("state length must be even for symplectic integration")
        return super().step(state, derivative, time, dt, layout=layout)

    def _advance(self, x, f, t, h, layout):
        return pefrl_step(f, x, t, h, layout)


class AdaptiveSolver(ODESolver):
    """
    Base for embedded-pair solvers with step size control.

    Adaptivity is bounded inside each fixed sub-step: the solver tries its
    current internal step size (clamped to what is left of the sub-step),
    accepts when the error estimate is below tolerance or the step is already
    at min_step_size, grows the step by 1.5 (up to the fixed time step) when
    the error is below tolerance / 10 and halves it on rejection. The internal
    step size carries over between calls.
    """

    adaptive = True
    default_tolerance = 1e-6
    default_min_step_size = 1e-6

    def __init__(
        self,
        fixed_time_step: float = DEFAULT_FIXED_TIME_STEP,
        tolerance: Optional[float] = None,
        min_step_size: Optional[float] = None,
    ) -> None:
        super().__init__(fixed_time_step)
        self.tolerance = float(tolerance if tolerance is not None else self.default_tolerance)
        self.min_step_size = float(min_step_size if min_step_size is not None else self.default_min_step_size)
        if self.tolerance <= 0.0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance!r}")
        if self.min_step_size <= 0.0:
            raise ValueError(f"min_step_size must be positive, got {self.min_step_size!r}")
        self._step_size = self._fixed_time_step
        self._stats: Dict[str, int] = {"accepted": 0, "rejected": 0}

    def set_fixed_time_step(self, dt: float) -> None:
        super().set_fixed_time_step(dt)
        self._step_size = self._fixed_time_step

    @property
    def step_size(self) -> float:
        """Current internal step size proposal."""
        return self._step_size

    @property
    def stats(self) -> Dict[str, int]:
        """Counts of accepted and rejected trial steps."""
        return dict(self._stats)

    def reset_stats(self) -> None:
        self._stats = {"accepted": 0, "rejected": 0}

    @abstractmethod
    def _trial(self, f: RHS, x: np.ndarray, t: float, h: float) -> Tuple[np.ndarray, float]:
        """One embedded step: (higher order solution, error estimate)."""

    def _advance(self, x, f, t, h, layout):
        span = abs(h)
        sign = math.copysign(1.0, h)
        y = np.array(x, dtype=float, copy=True)
        done = 0.0
        proposal = self._step_size
        rejected = 0
        while done < span:
            size = min(proposal, span - done)
            if size <= 0.0:
                break
            candidate, error = self._trial(f, y, t + sign * done, sign * size)
            if error < self.tolerance or size <= self.min_step_size:
                y = candidate
                done += size
                self._stats["accepted"] += 1
                if not np.all(np.isfinite(y)):
                    break
                if error < self.tolerance / 10.0:
                    proposal = min(proposal * 1.5, self._fixed_time_step)
            else:
                rejected += 1
                self._stats["rejected"] += 1
                proposal = max(size * 0.5, self.min_step_size)
            self._step_size = proposal
        if rejected:
            logger.debug("%s rejected %d trial steps in a sub-step of %.3g s", self.name, rejected, h)
        return y


class AdaptiveEulerSolver(AdaptiveSolver):
    """Euler/Heun embedded pair, order 1(2). Cheap, for smooth non-stiff motion."""

    name = "adaptive_euler"
    order = 2
    default_tolerance = 1e-4
    default_min_step_size = 1e-6

    def _trial(self, f, x, t, h):
        return euler_heun_step(f, x, t, h)


class AdaptiveRK45Solver(AdaptiveSolver):
    """Cash-Karp Runge-Kutta 4(5) with error control."""

    name = "adaptive_rk45"
    order = 5
    default_tolerance = 1e-6
    default_min_step_size = 1e-6

    def _trial(self, f, x, t, h):
        return cash_karp_step(f, x, t, h)


class DormandPrince87Solver(AdaptiveSolver):
    """Prince-Dormand 8(7), 13 stages. Highest local accuracy, highest cost."""

    name = "dormand_prince_87"
    order = 8
    default_tolerance = 1e-8
    default_min_step_size = 1e-8

    def _trial(self, f, x, t, h):
        return dormand_prince87_step(f, x, t, h)


def describe(solver: ODESolver) -> Dict[str, Any]:
    """Summary of a solver's configuration."""
    info: Dict[str, Any] = {
        "name": solver.name,
        "order": solver.order,
        "symplectic": solver.symplectic,
        "adaptive": solver.adaptive,
        "fixed_time_step": solver.fixed_time_step,
    }
    if isinstance(solver, AdaptiveSolver):
        info["tolerance"] = solver.tolerance
        info["min_step_size"] = solver.min_step_size
    return info
