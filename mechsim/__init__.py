"""
mechsim: classical mechanics simulations (springs and pendulums) with
swappable sub-stepping ODE solvers.
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

from mechsim.core.driver import AnimationDriver
from mechsim.core.history import SimulationHistory
from mechsim.exceptions import DivergedError, InvalidParameterError, MechsimError, UnknownSolverError
from mechsim.physics import (
    DoublePendulumModel,
    DoubleSpringModel,
    PendulumModel,
    Preferences,
    SingleSpringModel,
    SolverType,
    create_solver,
)

__all__ = [
    "__version__",
    "AnimationDriver",
    "SimulationHistory",
    "MechsimError",
    "InvalidParameterError",
    "DivergedError",
    "UnknownSolverError",
    "Preferences",
    "SolverType",
    "create_solver",
    "SingleSpringModel",
    "DoubleSpringModel",
    "PendulumModel",
    "DoublePendulumModel",
]
