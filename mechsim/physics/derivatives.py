"""
Equations of motion of the mechanical systems.

Each system has a frozen parameter dataclass and a pure right-hand side
rhs(x, t, params) -> dx/dt. Models bind a parameter snapshot into the rhs
before handing it to a solver, so the solver never reads mutable model fields.

State layouts:
  - single spring:   [x, v]
  - double spring:   [x1, v1, x2, v2]
  - pendulum:        [theta, omega]
  - double pendulum: [theta1, theta2, omega1, omega2]

Spring positions are measured downward from the natural length; angles from
the downward vertical.
"""

import math
from dataclasses import dataclass, fields
from functools import partial
from typing import Any, Callable, Dict

import numpy as np

from mechsim.exceptions import InvalidParameterError

STANDARD_GRAVITY = 9.8


def _require_positive(name: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidParameterError(name, value, "finite and > 0")


def _require_non_negative(name: str, value: float) -> None:
    if not math.isfinite(value) or value < 0.0:
        raise InvalidParameterError(name, value, "finite and >= 0")


class _Parameters:
    """Validation shared by the parameter dataclasses."""

    _positive: tuple = ()
    _non_negative: tuple = ()

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, float(getattr(self, f.name)))
        for name in self._positive:
            _require_positive(name, getattr(self, name))
        for name in self._non_negative:
            _require_non_negative(name, getattr(self, name))

    def to_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class SingleSpringParameters(_Parameters):
    """Vertical mass-spring with linear damping."""

    mass: float = 1.0
    spring_constant: float = 10.0
    damping: float = 0.1
    gravity: float = STANDARD_GRAVITY

    _positive = ("mass", "spring_constant")
    _non_negative = ("damping", "gravity")


@dataclass(frozen=True)
class DoubleSpringParameters(_Parameters):
    """Two masses hanging from two springs in series."""

    mass1: float = 1.0
    mass2: float = 1.0
    spring_constant1: float = 10.0
    spring_constant2: float = 10.0
    damping1: float = 0.1
    damping2: float = 0.1
    gravity: float = STANDARD_GRAVITY
    natural_length1: float = 0.8
    natural_length2: float = 0.8

    _positive = ("mass1", "mass2", "spring_constant1", "spring_constant2", "natural_length1", "natural_length2")
    _non_negative = ("damping1", "damping2", "gravity")


@dataclass(frozen=True)
class PendulumParameters(_Parameters):
    """Simple pendulum with a point bob on a massless rod."""

    length: float = 2.0
    mass: float = 1.0
    gravity: float = STANDARD_GRAVITY
    damping: float = 0.1

    _positive = ("length", "mass")
    _non_negative = ("gravity", "damping")


@dataclass(frozen=True)
class DoublePendulumParameters(_Parameters):
    """Two point bobs on massless rods; damping acts on both joints."""

    length1: float = 1.5
    length2: float = 1.5
    mass1: float = 1.0
    mass2: float = 1.0
    gravity: float = STANDARD_GRAVITY
    damping: float = 0.0

    _positive = ("length1", "length2", "mass1", "mass2")
    _non_negative = ("gravity", "damping")


def single_spring_rhs(x: np.ndarray, t: float, p: SingleSpringParameters) -> np.ndarray:
    """dx/dt = v, dv/dt = (-k x - b v + m g) / m."""
    pos, vel = x[0], x[1]
    acc = (-p.spring_constant * pos - p.damping * vel + p.mass * p.gravity) / p.mass
    return np.array([vel, acc])


def double_spring_rhs(x: np.ndarray, t: float, p: DoubleSpringParameters) -> np.ndarray:
    """Coupled springs; spring 2 acts on the relative displacement x2 - x1."""
    x1, v1, x2, v2 = x[0], x[1], x[2], x[3]
    stretch2 = x2 - x1
    a1 = (-p.spring_constant1 * x1 + p.spring_constant2 * stretch2 - p.damping1 * v1 + p.mass1 * p.gravity) / p.mass1
    a2 = (-p.spring_constant2 * stretch2 - p.damping2 * v2 + p.mass2 * p.gravity) / p.mass2
    return np.array([v1, a1, v2, a2])


def pendulum_rhs(x: np.ndarray, t: float, p: PendulumParameters) -> np.ndarray:
    """dtheta/dt = omega, domega/dt = -(g/L) sin(theta) - (b / (m L^2)) omega."""
    theta, omega = x[0], x[1]
    inertia = p.mass * p.length * p.length
    alpha = -(p.gravity / p.length) * np.sin(theta) - (p.damping / inertia) * omega
    return np.array([omega, alpha])


def double_pendulum_rhs(x: np.ndarray, t: float, p: DoublePendulumParameters) -> np.ndarray:
    """Lagrangian double pendulum with a linear damping torque on each arm."""
    theta1, theta2, omega1, omega2 = x[0], x[1], x[2], x[3]
    m1, m2 = p.mass1, p.mass2
    l1, l2 = p.length1, p.length2
    g, b = p.gravity, p.damping
    m_total = m1 + m2

    delta = theta2 - theta1
    cos_d = np.cos(delta)
    sin_d = np.sin(delta)

    den1 = m_total * l1 - m2 * l1 * cos_d * cos_d
    den2 = (l2 / l1) * den1

    num1 = (
        m2 * l1 * omega1 * omega1 * sin_d * cos_d
        + m2 * g * np.sin(theta2) * cos_d
        + m2 * l2 * omega2 * omega2 * sin_d
        - m_total * g * np.sin(theta1)
        - b * omega1
    )
    num2 = (
        -m2 * l2 * omega2 * omega2 * sin_d * cos_d
        + m_total * g * np.sin(theta1) * cos_d
        - m_total * l1 * omega1 * omega1 * sin_d
        - m_total * g * np.sin(theta2)
        - b * omega2
    )
    return np.array([omega1, omega2, num1 / den1, num2 / den2])


def bind(rhs: Callable[..., np.ndarray], params: Any) -> Callable[[np.ndarray, float], np.ndarray]:
    """Freeze params into rhs, giving the f(x, t) form solvers expect."""
    return partial(rhs, p=params)
