"""
Mechanical energies computed from state and parameters.

Pure functions, nothing is cached. Potential energies use the natural length
(springs) or the lowest bob position (pendulum) as zero; gravitational energy
of the springs is -m g x because x points downward.
"""

import math
from typing import Sequence

import numpy as np

from mechsim.physics.derivatives import (
    DoublePendulumParameters,
    DoubleSpringParameters,
    PendulumParameters,
    SingleSpringParameters,
)


# --- Single spring ---

def single_spring_kinetic(x: np.ndarray, p: SingleSpringParameters) -> float:
    return 0.5 * p.mass * x[1] * x[1]


def single_spring_elastic(x: np.ndarray, p: SingleSpringParameters) -> float:
    return 0.5 * p.spring_constant * x[0] * x[0]


def single_spring_gravitational(x: np.ndarray, p: SingleSpringParameters) -> float:
    return -p.mass * p.gravity * x[0]


# --- Double spring ---

def double_spring_kinetic(x: np.ndarray, p: DoubleSpringParameters) -> float:
    return 0.5 * p.mass1 * x[1] * x[1] + 0.5 * p.mass2 * x[3] * x[3]


def double_spring_elastic(x: np.ndarray, p: DoubleSpringParameters) -> float:
    stretch2 = x[2] - x[0]
    return 0.5 * p.spring_constant1 * x[0] * x[0] + 0.5 * p.spring_constant2 * stretch2 * stretch2


def double_spring_gravitational(x: np.ndarray, p: DoubleSpringParameters) -> float:
    return -p.gravity * (p.mass1 * x[0] + p.mass2 * x[2])


# --- Pendulum ---

def pendulum_kinetic(x: np.ndarray, p: PendulumParameters) -> float:
    """(1/2) I omega^2 with I = m L^2."""
    return 0.5 * p.mass * p.length * p.length * x[1] * x[1]


def pendulum_potential(x: np.ndarray, p: PendulumParameters) -> float:
    """m g L (1 - cos theta), zero at the bottom."""
    return p.mass * p.gravity * p.length * (1.0 - math.cos(x[0]))


# --- Double pendulum ---

def double_pendulum_kinetic(x: np.ndarray, p: DoublePendulumParameters) -> float:
    theta1, theta2, omega1, omega2 = x[0], x[1], x[2], x[3]
    l1, l2 = p.length1, p.length2
    return (
        0.5 * (p.mass1 + p.mass2) * l1 * l1 * omega1 * omega1
        + 0.5 * p.mass2 * l2 * l2 * omega2 * omega2
        + p.mass2 * l1 * l2 * omega1 * omega2 * math.cos(theta1 - theta2)
    )


def double_pendulum_potential(x: np.ndarray, p: DoublePendulumParameters) -> float:
    """m1 g y1 + m2 g y2 with y measured upward from the pivot."""
    y1 = -p.length1 * math.cos(x[0])
    y2 = y1 - p.length2 * math.cos(x[1])
    return p.gravity * (p.mass1 * y1 + p.mass2 * y2)


def relative_energy_drift(energies: Sequence[float]) -> float:
    """
    Largest |E(t) - E(0)| / |E(0)| over a recorded energy series.

    Falls back to the absolute deviation when E(0) is zero.
    """
    e = np.asarray(energies, dtype=float).ravel()
    if e.size == 0:
        return 0.0
    deviation = float(np.max(np.abs(e - e[0])))
    scale = abs(e[0])
    return deviation / scale if scale > 0.0 else deviation
