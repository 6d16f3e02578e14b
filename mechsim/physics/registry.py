"""
Solver registry: maps a SolverType to a solver class and builds instances.

Usage:
    >>> solver = create_solver(SolverType.FOREST_RUTH_PEFRL, fixed_time_step=0.01)
    >>> solver = create_solver("adaptive_rk45")
"""

from enum import Enum
from typing import Any, Dict, List, Type, Union

from mechsim.exceptions import UnknownSolverError
from mechsim.physics.solvers import (
    DEFAULT_FIXED_TIME_STEP,
    AdaptiveEulerSolver,
    AdaptiveRK45Solver,
    DormandPrince87Solver,
    ForestRuthPEFRLSolver,
    ModifiedMidpointSolver,
    ODESolver,
    RungeKuttaSolver,
)


class SolverType(Enum):
    """Available integration methods."""

    RK4 = "rk4"
    ADAPTIVE_RK45 = "adaptive_rk45"
    ADAPTIVE_EULER = "adaptive_euler"
    MODIFIED_MIDPOINT = "modified_midpoint"
    FOREST_RUTH_PEFRL = "forest_ruth_pefrl"
    DORMAND_PRINCE_87 = "dormand_prince_87"


class NominalTimeStep(Enum):
    """Selectable fixed sub-step sizes, in seconds."""

    FINEST = 0.00001
    VERY_SMALL = 0.0001
    SMALL = 0.0005
    DEFAULT = 0.001
    MEDIUM = 0.005


SOLVER_REGISTRY: Dict[SolverType, Type[ODESolver]] = {
    SolverType.RK4: RungeKuttaSolver,
    SolverType.ADAPTIVE_RK45: AdaptiveRK45Solver,
    SolverType.ADAPTIVE_EULER: AdaptiveEulerSolver,
    SolverType.MODIFIED_MIDPOINT: ModifiedMidpointSolver,
    SolverType.FOREST_RUTH_PEFRL: ForestRuthPEFRLSolver,
    SolverType.DORMAND_PRINCE_87: DormandPrince87Solver,
}


def resolve_solver_type(kind: Union[SolverType, str]) -> SolverType:
    """Accept a SolverType, its value ("rk4") or its member name ("RK4")."""
    if isinstance(kind, SolverType):
        return kind
    key = str(kind)
    for member in SolverType:
        if key == member.value or key.upper() == member.name:
            return member
    available = ", ".join(m.value for m in SolverType)
    raise UnknownSolverError(f"Unknown solver '{kind}'. Available: {available}")


def resolve_time_step(value: Union[NominalTimeStep, float, str]) -> float:
    """Fixed time step in seconds from a NominalTimeStep, its name or a float."""
    if isinstance(value, NominalTimeStep):
        return value.value
    if isinstance(value, str):
        try:
            return NominalTimeStep[value.upper()].value
        except KeyError:
            return float(value)
    return float(value)


def get_solver_class(kind: Union[SolverType, str]) -> Type[ODESolver]:
    return SOLVER_REGISTRY[resolve_solver_type(kind)]


def solver_type_of(solver: ODESolver) -> SolverType:
    """Inverse lookup: the SolverType whose registered class built solver."""
    for kind, cls in SOLVER_REGISTRY.items():
        if type(solver) is cls:
            return kind
    raise UnknownSolverError(f"{type(solver).__name__} is not a registered solver")


def create_solver(
    kind: Union[SolverType, str] = SolverType.RK4,
    fixed_time_step: Union[NominalTimeStep, float, str] = DEFAULT_FIXED_TIME_STEP,
    **options: Any,
) -> ODESolver:
    """
    Build a solver of the requested kind.

    Args:
        kind: SolverType member or its name.
        fixed_time_step: sub-step size (seconds or NominalTimeStep).
        **options: extra constructor arguments (e.g. tolerance for adaptive
            solvers, n_substeps for the modified midpoint).

    Raises:
        UnknownSolverError: kind is not registered.
    """
    cls = get_solver_class(kind)
    return cls(fixed_time_step=resolve_time_step(fixed_time_step), **options)


def list_solvers() -> List[str]:
    """Names of all registered solvers."""
    return [kind.value for kind in SOLVER_REGISTRY]
