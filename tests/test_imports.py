"""Verify that main modules are importable."""

import logging


def test_import_mechsim() -> None:
    import mechsim
    assert mechsim.__version__ == "0.1.0"


def test_package_logger_has_null_handler() -> None:
    import mechsim  # noqa: F401
    handlers = logging.getLogger("mechsim").handlers
    assert any(isinstance(h, logging.NullHandler) for h in handlers)


def test_import_core() -> None:
    from mechsim.core import AnimationDriver, SimulationComponent, SimulationHistory, StateComponent, StepResult
    assert AnimationDriver is not None
    assert SimulationComponent is not None
    assert SimulationHistory is not None
    assert StateComponent is not None
    assert StepResult is not None


def test_import_physics() -> None:
    from mechsim.physics import (
        DoublePendulumModel,
        DoubleSpringModel,
        ODEModel,
        PendulumModel,
        Preferences,
        SingleSpringModel,
        SolverType,
        create_solver,
    )
    assert ODEModel is not None
    assert Preferences is not None
    assert create_solver is not None
    assert len(list(SolverType)) == 6
    for cls in (SingleSpringModel, DoubleSpringModel, PendulumModel, DoublePendulumModel):
        assert issubclass(cls, ODEModel)


def test_import_io() -> None:
    from mechsim.io import load_config, save_config, to_builtin
    assert save_config is not None
    assert load_config is not None
    assert to_builtin is not None


def test_exception_hierarchy() -> None:
    from mechsim.exceptions import DivergedError, InvalidParameterError, MechsimError, UnknownSolverError
    assert issubclass(InvalidParameterError, ValueError)
    assert issubclass(DivergedError, RuntimeError)
    assert issubclass(UnknownSolverError, KeyError)
    for exc in (InvalidParameterError, DivergedError, UnknownSolverError):
        assert issubclass(exc, MechsimError)
