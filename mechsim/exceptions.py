"""Exceptions raised by the simulation core."""

from typing import Optional

import numpy as np


class MechsimError(Exception):
    """Base class for mechsim errors."""


class InvalidParameterError(MechsimError, ValueError):
    """A physical parameter is outside its admissible range."""

    def __init__(self, name: str, value: float, constraint: str) -> None:
        self.name = name
        self.value = value
        self.constraint = constraint
        super().__init__(f"{name} must be {constraint}, got {value!r}")


class DivergedError(MechsimError, RuntimeError):
    """
    Integration produced a non-finite state.

    Attributes:
        time: simulated time of the last finite state.
        state: the offending (non-finite) state vector.
    """

    def __init__(self, time: float, state: Optional[np.ndarray] = None) -> None:
        self.time = time
        self.state = None if state is None else np.array(state, dtype=float, copy=True)
        super().__init__(f"integration diverged after t={time:.6g}: non-finite state {self.state}")


class UnknownSolverError(MechsimError, KeyError):
    """No solver is registered under the requested name."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
