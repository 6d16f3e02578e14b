"""
Physics of the mechanical models.

Hierarchy:
  - integrators: single-step schemes (RK4, modified midpoint, PEFRL, embedded pairs)
  - solvers: sub-stepping solvers built on the integrators
  - registry: SolverType / NominalTimeStep and the solver factory
  - preferences: solver kind and time step shared by models
  - derivatives: parameter dataclasses and equations of motion
  - energy: kinetic and potential energies
  - ode: base ODE model (ODEModel)
  - library: ready-made models (SingleSpringModel, PendulumModel, ...)
"""

# --- Integrators (numerical level) ---
from mechsim.physics.integrators import (
    cash_karp_step,
    dormand_prince87_step,
    euler_heun_step,
    modified_midpoint_step,
    pefrl_step,
    rk4_step,
)

# --- Solvers ---
from mechsim.physics.solvers import (
    AdaptiveEulerSolver,
    AdaptiveRK45Solver,
    DormandPrince87Solver,
    ForestRuthPEFRLSolver,
    ModifiedMidpointSolver,
    ODESolver,
    RungeKuttaSolver,
)
from mechsim.physics.registry import NominalTimeStep, SolverType, create_solver, list_solvers
from mechsim.physics.preferences import Preferences

# --- Equations of motion ---
from mechsim.physics.derivatives import (
    DoublePendulumParameters,
    DoubleSpringParameters,
    PendulumParameters,
    SingleSpringParameters,
)
from mechsim.physics.energy import relative_energy_drift

# --- Models ---
from mechsim.physics.ode import ODEModel, TimeSpeed
from mechsim.physics.library import (
    DoublePendulumModel,
    DoubleSpringModel,
    PendulumModel,
    SingleSpringModel,
)

__all__ = [
    # Integrators
    "rk4_step",
    "modified_midpoint_step",
    "pefrl_step",
    "euler_heun_step",
    "cash_karp_step",
    "dormand_prince87_step",
    # Solvers
    "ODESolver",
    "RungeKuttaSolver",
    "ModifiedMidpointSolver",
    "ForestRuthPEFRLSolver",
    "AdaptiveEulerSolver",
    "AdaptiveRK45Solver",
    "DormandPrince87Solver",
    "SolverType",
    "NominalTimeStep",
    "create_solver",
    "list_solvers",
    "Preferences",
    # Parameters
    "SingleSpringParameters",
    "DoubleSpringParameters",
    "PendulumParameters",
    "DoublePendulumParameters",
    "relative_energy_drift",
    # Models
    "ODEModel",
    "TimeSpeed",
    "SingleSpringModel",
    "DoubleSpringModel",
    "PendulumModel",
    "DoublePendulumModel",
]
