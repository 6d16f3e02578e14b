"""Tests for the mechanical models (ODEModel and the ready-made library)."""

import gc
import logging
import math

import numpy as np
import pytest

from mechsim.exceptions import DivergedError, InvalidParameterError
from mechsim.physics import (
    DoublePendulumModel,
    DoublePendulumParameters,
    DoubleSpringModel,
    DoubleSpringParameters,
    PendulumModel,
    PendulumParameters,
    Preferences,
    SingleSpringModel,
    SingleSpringParameters,
    SolverType,
    TimeSpeed,
)
from mechsim.physics.solvers import ForestRuthPEFRLSolver, RungeKuttaSolver


# --- defaults and derivatives ---

def test_single_spring_defaults() -> None:
    model = SingleSpringModel()
    assert model.named_state() == {"position": 2.0, "velocity": 0.0}
    assert model.parameters == SingleSpringParameters(mass=1.0, spring_constant=10.0, damping=0.1, gravity=9.8)
    assert model.time == 0.0
    assert model.is_playing
    assert model.time_speed is TimeSpeed.NORMAL
    assert model.solver_type is SolverType.RK4
    assert model.get_physics_time_step() == 0.001


def test_single_spring_derivatives() -> None:
    model = SingleSpringModel()
    model.velocity = 1.0
    # a = (-k x - b v + m g) / m
    np.testing.assert_allclose(model.derivatives(), [1.0, -20.0 - 0.1 + 9.8])


def test_single_spring_energies() -> None:
    model = SingleSpringModel()
    assert model.kinetic_energy == 0.0
    assert model.elastic_energy == pytest.approx(20.0)
    assert model.gravitational_energy == pytest.approx(-19.6)
    assert model.potential_energy == pytest.approx(0.4)
    assert model.total_energy == pytest.approx(0.4)


def test_single_spring_equilibrium_is_static() -> None:
    model = SingleSpringModel(state=[9.8 / 10.0, 0.0])
    model.step(0.1)
    assert model.position == pytest.approx(0.98, abs=1e-12)
    assert model.velocity == pytest.approx(0.0, abs=1e-12)


def test_double_spring_defaults_and_equilibrium() -> None:
    model = DoubleSpringModel()
    assert model.named_state() == {"position1": 1.5, "velocity1": 0.0, "position2": 3.0, "velocity2": 0.0}
    assert model.natural_length1 == 0.8
    assert model.layout == ((0, 2), (1, 3))

    x1 = (model.mass1 + model.mass2) * model.gravity / model.spring_constant1
    x2 = x1 + model.mass2 * model.gravity / model.spring_constant2
    model.set_state([x1, 0.0, x2, 0.0])
    np.testing.assert_allclose(model.derivatives(), 0.0, atol=1e-12)


def test_double_spring_energies() -> None:
    model = DoubleSpringModel(state=[1.0, 2.0, 3.0, -1.0])
    assert model.kinetic_energy == pytest.approx(0.5 * 4.0 + 0.5 * 1.0)
    assert model.elastic_energy == pytest.approx(0.5 * 10.0 * 1.0 + 0.5 * 10.0 * 4.0)
    assert model.gravitational_energy == pytest.approx(-9.8 * (1.0 + 3.0))


def test_pendulum_defaults() -> None:
    model = PendulumModel()
    assert model.angle == pytest.approx(math.pi / 4)
    assert model.angular_velocity == 0.0
    assert (model.length, model.mass, model.gravity, model.damping) == (2.0, 1.0, 9.8, 0.1)
    assert model.potential_energy == pytest.approx(9.8 * 2.0 * (1.0 - math.cos(math.pi / 4)))
    x, y = model.bob_position
    assert x == pytest.approx(2.0 * math.sin(math.pi / 4))
    assert y == pytest.approx(-2.0 * math.cos(math.pi / 4))


def test_pendulum_small_angle_period() -> None:
    model = PendulumModel(parameters=PendulumParameters(damping=0.0), state=[0.01, 0.0], max_dt=None)
    period = 2.0 * math.pi * math.sqrt(model.length / model.gravity)
    model.step(period)
    assert model.angle == pytest.approx(0.01, abs=1e-6)


def test_pendulum_damping_torque() -> None:
    model = PendulumModel(state=[0.0, 1.0])
    # alpha = -(g/L) sin(theta) - b / (m L^2) omega
    assert model.derivatives()[1] == pytest.approx(-0.1 / 4.0)


def test_double_pendulum_defaults() -> None:
    model = DoublePendulumModel()
    assert model.angle1 == pytest.approx(math.pi / 2)
    assert model.angle2 == pytest.approx(math.pi / 2)
    assert model.damping == 0.0
    assert model.layout == ((0, 1), (2, 3))
    assert model.potential_energy == pytest.approx(0.0, abs=1e-12)
    (x1, y1), (x2, y2) = model.bob_positions
    assert (x1, x2) == (pytest.approx(1.5), pytest.approx(3.0))
    assert (y1, y2) == (pytest.approx(0.0, abs=1e-12), pytest.approx(0.0, abs=1e-12))


def test_double_pendulum_released_horizontal() -> None:
    """Both arms horizontal at rest: only the upper arm starts accelerating."""
    d = DoublePendulumModel().derivatives()
    assert d[0] == 0.0 and d[1] == 0.0
    assert d[2] == pytest.approx(-9.8 / 1.5)
    assert d[3] == pytest.approx(0.0, abs=1e-12)


def test_double_pendulum_potential_energy_hanging() -> None:
    model = DoublePendulumModel(state=[0.0, 0.0, 0.0, 0.0])
    # m1 g y1 + m2 g y2 with y1 = -L1, y2 = -L1 - L2
    assert model.potential_energy == pytest.approx(-9.8 * 1.5 - 9.8 * 3.0)
    np.testing.assert_allclose(model.derivatives(), 0.0, atol=1e-12)


def test_double_pendulum_energy_conserved_without_damping() -> None:
    model = DoublePendulumModel()
    e0 = model.total_energy
    for _ in range(100):
        model.step(0.05)
    assert model.total_energy == pytest.approx(e0, abs=1e-5)


# --- parameters and state writes ---

@pytest.mark.parametrize(
    "cls, field, value",
    [
        (SingleSpringParameters, "mass", 0.0),
        (SingleSpringParameters, "spring_constant", -1.0),
        (SingleSpringParameters, "damping", -0.1),
        (DoubleSpringParameters, "natural_length2", 0.0),
        (PendulumParameters, "length", float("nan")),
        (PendulumParameters, "gravity", -9.8),
        (DoublePendulumParameters, "mass2", float("inf")),
    ],
)
def test_invalid_parameters_rejected(cls, field, value) -> None:
    with pytest.raises(InvalidParameterError) as info:
        cls(**{field: value})
    assert info.value.name == field


def test_parameter_setter_rejects_and_keeps_old_value() -> None:
    model = SingleSpringModel()
    with pytest.raises(InvalidParameterError):
        model.mass = 0.0
    with pytest.raises(ValueError):
        model.set_parameters(damping=float("nan"))
    assert model.mass == 1.0
    assert model.damping == 0.1


def test_parameter_setter_replaces_snapshot() -> None:
    model = PendulumModel()
    before = model.parameters
    model.length = 3.0
    assert model.parameters.length == 3.0
    assert before.length == 2.0
    assert isinstance(model.parameters.length, float)


def test_unknown_parameter() -> None:
    with pytest.raises(TypeError):
        SingleSpringModel().set_parameters(stiffness=3.0)


def test_wrong_parameter_class() -> None:
    with pytest.raises(TypeError):
        PendulumModel(parameters=SingleSpringParameters())


def test_set_position_zeroes_velocity() -> None:
    model = SingleSpringModel()
    model.velocity = 3.0
    model.set_position(0.5)
    assert model.named_state() == {"position": 0.5, "velocity": 0.0}


def test_set_angle_zeroes_matching_velocity_only() -> None:
    model = DoublePendulumModel(state=[0.1, 0.2, 1.0, 2.0])
    model.set_angle2(0.7)
    np.testing.assert_array_equal(model.state, [0.1, 0.7, 1.0, 0.0])
    model.set_angle1(-0.3)
    np.testing.assert_array_equal(model.state, [-0.3, 0.7, 0.0, 0.0])

    springs = DoubleSpringModel(state=[1.0, 1.0, 2.0, 2.0])
    springs.set_position1(1.2)
    np.testing.assert_array_equal(springs.state, [1.2, 0.0, 2.0, 2.0])

    pendulum = PendulumModel(state=[0.1, 1.0])
    pendulum.set_angle(0.4)
    np.testing.assert_array_equal(pendulum.state, [0.4, 0.0])


def test_drag_requires_position_coordinate() -> None:
    with pytest.raises(ValueError):
        SingleSpringModel().drag("velocity", 1.0)


def test_set_state_validation() -> None:
    model = PendulumModel()
    with pytest.raises(ValueError):
        model.set_state([0.1, 0.2, 0.3])
    with pytest.raises(ValueError):
        model.set_state([float("nan"), 0.0])
    with pytest.raises(ValueError):
        model.angle = float("inf")
    assert model.angle == pytest.approx(math.pi / 4)


def test_state_is_a_copy() -> None:
    model = SingleSpringModel()
    x = model.state
    x[0] = 100.0
    assert model.position == 2.0


# --- time control ---

def test_step_advances_time() -> None:
    model = SingleSpringModel()
    assert model.step(0.016) == pytest.approx(0.016)
    assert model.time == pytest.approx(0.016)
    assert model.position < 2.0


def test_zero_step_is_noop() -> None:
    model = DoublePendulumModel()
    before = model.state
    assert model.step(0.0) == 0.0
    np.testing.assert_array_equal(model.state, before)


def test_pause_and_force_step() -> None:
    model = SingleSpringModel()
    model.pause()
    assert not model.is_playing
    assert model.step(0.05) == 0.0
    np.testing.assert_array_equal(model.state, [2.0, 0.0])

    assert model.step(0.05, force_step=True) == pytest.approx(0.05)
    model.play()
    assert model.step(0.05) == pytest.approx(0.1)


@pytest.mark.parametrize("speed, expected", [(TimeSpeed.SLOW, 0.01), (TimeSpeed.NORMAL, 0.02), ("fast", 0.04)])
def test_time_speed_scales_dt(speed, expected) -> None:
    model = PendulumModel()
    model.time_speed = speed
    assert model.step(0.02) == pytest.approx(expected)


def test_force_step_ignores_time_speed() -> None:
    model = PendulumModel()
    model.time_speed = TimeSpeed.FAST
    assert model.step(0.02, force_step=True) == pytest.approx(0.02)


def test_large_dt_is_capped() -> None:
    model = SingleSpringModel()
    assert model.step(5.0) == pytest.approx(0.1)
    assert model.step(-5.0) == pytest.approx(0.0)

    uncapped = SingleSpringModel(max_dt=None)
    assert uncapped.step(0.5) == pytest.approx(0.5)


def test_negative_dt_retraces_trajectory() -> None:
    model = PendulumModel()
    for _ in range(10):
        model.step(0.05)
    for _ in range(10):
        model.step(-0.05)
    assert model.time == pytest.approx(0.0, abs=1e-12)
    np.testing.assert_allclose(model.state, [math.pi / 4, 0.0], atol=1e-9)


def test_non_finite_dt_rejected() -> None:
    with pytest.raises(ValueError):
        SingleSpringModel().step(float("nan"))


def test_reset_restores_defaults_but_keeps_solver() -> None:
    model = SingleSpringModel(state=[1.0, 0.5])
    model.set_solver_type(SolverType.FOREST_RUTH_PEFRL)
    model.spring_constant = 20.0
    model.time_speed = TimeSpeed.SLOW
    model.pause()
    model.step(0.1, force_step=True)

    model.reset()
    np.testing.assert_array_equal(model.state, [1.0, 0.5])
    assert model.spring_constant == 10.0
    assert model.time == 0.0
    assert model.is_playing
    assert model.time_speed is TimeSpeed.NORMAL
    assert model.solver_type is SolverType.FOREST_RUTH_PEFRL


# --- solvers and preferences ---

def test_solver_hot_swap_keeps_state_bit_identical() -> None:
    model = DoublePendulumModel()
    for _ in range(5):
        model.step(0.016)
    before = model.state
    for kind in SolverType:
        model.set_solver_type(kind)
        assert model.solver_type is kind
        np.testing.assert_array_equal(model.state, before)


def test_set_solver_keeps_time_step() -> None:
    model = PendulumModel()
    model.set_physics_time_step(0.005)
    model.set_solver_type("adaptive_rk45")
    assert model.get_physics_time_step() == 0.005


def test_set_solver_instance() -> None:
    model = PendulumModel()
    solver = ForestRuthPEFRLSolver(fixed_time_step=0.002)
    model.set_solver(solver)
    assert model.solver is solver
    assert model.solver_type is SolverType.FOREST_RUTH_PEFRL


def test_explicit_solver_at_construction() -> None:
    solver = RungeKuttaSolver(fixed_time_step=0.0005)
    model = SingleSpringModel(solver=solver)
    assert model.solver is solver


def test_models_follow_shared_preferences() -> None:
    prefs = Preferences()
    a = SingleSpringModel(preferences=prefs)
    b = PendulumModel(preferences=prefs)
    assert prefs.n_listeners == 2

    prefs.solver_type = SolverType.DORMAND_PRINCE_87
    prefs.fixed_time_step = 0.0005
    for model in (a, b):
        assert model.solver_type is SolverType.DORMAND_PRINCE_87
        assert model.get_physics_time_step() == 0.0005

    a.dispose()
    assert prefs.n_listeners == 1
    prefs.solver_type = "rk4"
    assert a.solver_type is SolverType.DORMAND_PRINCE_87
    assert b.solver_type is SolverType.RK4


def test_dropped_model_released_by_shared_preferences() -> None:
    prefs = Preferences()
    kept = SingleSpringModel(preferences=prefs)
    dropped = PendulumModel(preferences=prefs)
    assert prefs.n_listeners == 2

    del dropped
    gc.collect()
    assert prefs.n_listeners == 1
    prefs.solver_type = SolverType.ADAPTIVE_RK45
    assert kept.solver_type is SolverType.ADAPTIVE_RK45


def test_model_built_from_preferences() -> None:
    prefs = Preferences(SolverType.MODIFIED_MIDPOINT, 0.002)
    model = DoubleSpringModel(preferences=prefs)
    assert model.solver_type is SolverType.MODIFIED_MIDPOINT
    assert model.get_physics_time_step() == 0.002


def test_pefrl_uses_model_layout() -> None:
    """PEFRL splits the interleaved [x1, v1, x2, v2] state correctly."""
    params = DoubleSpringParameters(damping1=0.0, damping2=0.0)
    reference = DoubleSpringModel(parameters=params)
    symplectic = DoubleSpringModel(parameters=params)
    symplectic.set_solver_type(SolverType.FOREST_RUTH_PEFRL)
    for _ in range(20):
        reference.step(0.05)
        symplectic.step(0.05)
    np.testing.assert_allclose(symplectic.state, reference.state, atol=1e-6)


# --- snapshots and divergence ---

def test_state_dict_round_trip_is_exact() -> None:
    model = DoublePendulumModel()
    model.step(0.1)
    snapshot = model.state_dict()
    assert set(snapshot) == {"state", "time", "parameters", "is_playing", "time_speed"}
    expected_state = model.state
    expected_time = model.time

    model.mass2 = 3.0
    for _ in range(10):
        model.step(0.05)
    model.load_state_dict(snapshot)

    np.testing.assert_array_equal(model.state, expected_state)
    assert model.time == expected_time
    assert model.mass2 == 1.0


def test_load_state_dict_rejects_bad_snapshot() -> None:
    model = SingleSpringModel()
    snapshot = model.state_dict()
    snapshot["state"] = [1.0]
    with pytest.raises(ValueError):
        model.load_state_dict(snapshot)
    np.testing.assert_array_equal(model.state, [2.0, 0.0])


def test_divergence_rolls_back_and_flags(caplog) -> None:
    model = SingleSpringModel(parameters=SingleSpringParameters(spring_constant=1e300))
    with np.errstate(all="ignore"), caplog.at_level(logging.WARNING, logger="mechsim"):
        with pytest.raises(DivergedError):
            model.step(0.016)
    assert model.diverged
    np.testing.assert_array_equal(model.state, [2.0, 0.0])
    assert model.time == 0.0
    assert any("diverged" in r.getMessage() for r in caplog.records)

    model.reset()
    assert not model.diverged


def test_repr() -> None:
    assert repr(PendulumModel()).startswith("PendulumModel(t=0, angle=0.7854")
