"""
Single-step update rules for ODEs: x_{n+1} = step(f, x_n, t_n, dt).

Pure numerical level: no dependency on models or solvers.
Interface: step(f, x, t, dt) -> x_next; embedded methods return (x_next, error)
where error is the max-norm difference between the two embedded solutions.
"""

from typing import Callable, Optional, Sequence, Tuple

import numpy as np

# Type for ODE right-hand side: (x, t) -> dx/dt
RHS = Callable[[np.ndarray, float], np.ndarray]


def heun_step(f: RHS, x: np.ndarray, t: float, dt: float) -> np.ndarray:
    """Heun (improved Euler), order 2: Euler predictor + trapezoidal corrector."""
    k1 = f(x, t)
    k2 = f(x + dt * k1, t + dt)
    return x + 0.5 * dt * (k1 + k2)


def euler_heun_step(f: RHS, x: np.ndarray, t: float, dt: float) -> Tuple[np.ndarray, float]:
    """Embedded Euler/Heun pair. Returns the Heun solution and |heun - euler|."""
    k1 = f(x, t)
    x_euler = x + dt * k1
    k2 = f(x_euler, t + dt)
    x_heun = x + 0.5 * dt * (k1 + k2)
    return x_heun, float(np.max(np.abs(x_heun - x_euler)))


def midpoint_step(f: RHS, x: np.ndarray, t: float, dt: float) -> np.ndarray:
    """Midpoint (RK2): evaluation at interval center."""
    k1 = f(x, t)
    k2 = f(x + 0.5 * dt * k1, t + 0.5 * dt)
    return x + dt * k2


def modified_midpoint_step(
    f: RHS, x: np.ndarray, t: float, dt: float, n_substeps: int = 4
) -> np.ndarray:
    """
    Gragg modified midpoint rule over n_substeps equal substeps, order 2.

    z_0 = x, z_1 = z_0 + h f(z_0), z_{m+1} = z_{m-1} + 2h f(z_m),
    result = (z_{n-1} + z_n + h f(z_n)) / 2.
    """
    h = dt / n_substeps
    z_prev = x
    z = x + h * f(x, t)
    for m in range(1, n_substeps):
        z_prev, z = z, z_prev + 2.0 * h * f(z, t + m * h)
    return 0.5 * (z_prev + z + h * f(z, t + dt))


def rk4_step(f: RHS, x: np.ndarray, t: float, dt: float) -> np.ndarray:
    """Runge-Kutta 4, order 4."""
    k1 = f(x, t)
    k2 = f(x + 0.5 * dt * k1, t + 0.5 * dt)
    k3 = f(x + 0.5 * dt * k2, t + 0.5 * dt)
    k4 = f(x + dt * k3, t + dt)
    return x + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


def cash_karp_step(f: RHS, x: np.ndarray, t: float, dt: float) -> Tuple[np.ndarray, float]:
    """Cash-Karp embedded Runge-Kutta 4(5). Returns the 5th order solution and error."""
    k1 = f(x, t)
    k2 = f(x + dt * k1 / 5.0, t + dt / 5.0)
    k3 = f(x + dt * (3.0 * k1 + 9.0 * k2) / 40.0, t + 3.0 * dt / 10.0)
    k4 = f(x + dt * (3.0 * k1 - 9.0 * k2 + 12.0 * k3) / 10.0, t + 3.0 * dt / 5.0)
    k5 = f(x + dt * (-11.0 * k1 + 135.0 * k2 - 140.0 * k3 + 70.0 * k4) / 54.0, t + dt)
    k6 = f(
        x
        + dt
        * (
            1631.0 * k1 / 55296.0
            + 175.0 * k2 / 512.0
            + 575.0 * k3 / 13824.0
            + 44275.0 * k4 / 110592.0
            + 253.0 * k5 / 4096.0
        ),
        t + 7.0 * dt / 8.0,
    )
    x4 = x + dt * (37.0 * k1 / 378.0 + 250.0 * k3 / 621.0 + 125.0 * k4 / 594.0 + 512.0 * k6 / 1771.0)
    x5 = x + dt * (
        2825.0 * k1 / 27648.0
        + 18575.0 * k3 / 48384.0
        + 13525.0 * k4 / 55296.0
        + 277.0 * k5 / 14336.0
        + k6 / 4.0
    )
    return x5, float(np.max(np.abs(x5 - x4)))


# Prince & Dormand RK8(7)13M tableau (rational approximations).
_DP87_C = np.array(
    [
        0.0,
        1.0 / 18.0,
        1.0 / 12.0,
        1.0 / 8.0,
        5.0 / 16.0,
        3.0 / 8.0,
        59.0 / 400.0,
        93.0 / 200.0,
        5490023248.0 / 9719169821.0,
        13.0 / 20.0,
        1201146811.0 / 1299019798.0,
        1.0,
        1.0,
    ]
)

_DP87_A = (
    (),
    (1.0 / 18.0,),
    (1.0 / 48.0, 1.0 / 16.0),
    (1.0 / 32.0, 0.0, 3.0 / 32.0),
    (5.0 / 16.0, 0.0, -75.0 / 64.0, 75.0 / 64.0),
    (3.0 / 80.0, 0.0, 0.0, 3.0 / 16.0, 3.0 / 20.0),
    (
        29443841.0 / 614563906.0,
        0.0,
        0.0,
        77736538.0 / 692538347.0,
        -28693883.0 / 1125000000.0,
        23124283.0 / 1800000000.0,
    ),
    (
        16016141.0 / 946692911.0,
        0.0,
        0.0,
        61564180.0 / 158732637.0,
        22789713.0 / 633445777.0,
        545815736.0 / 2771057229.0,
        -180193667.0 / 1043307555.0,
    ),
    (
        39632708.0 / 573591083.0,
        0.0,
        0.0,
        -433636366.0 / 683701615.0,
        -421739975.0 / 2616292301.0,
        100302831.0 / 723423059.0,
        790204164.0 / 839813087.0,
        800635310.0 / 3783071287.0,
    ),
    (
        246121993.0 / 1340847787.0,
        0.0,
        0.0,
        -37695042795.0 / 15268766246.0,
        -309121744.0 / 1061227803.0,
        -12992083.0 / 490766935.0,
        6005943493.0 / 2108947869.0,
        393006217.0 / 1396673457.0,
        123872331.0 / 1001029789.0,
    ),
    (
        -1028468189.0 / 846180014.0,
        0.0,
        0.0,
        8478235783.0 / 508512852.0,
        1311729495.0 / 1432422823.0,
        -10304129995.0 / 1701304382.0,
        -48777925059.0 / 3047939560.0,
        15336726248.0 / 1032824649.0,
        -45442868181.0 / 3398467696.0,
        3065993473.0 / 597172653.0,
    ),
    (
        185892177.0 / 718116043.0,
        0.0,
        0.0,
        -3185094517.0 / 667107341.0,
        -477755414.0 / 1098053517.0,
        -703635378.0 / 230739211.0,
        5731566787.0 / 1027545527.0,
        5232866602.0 / 850066563.0,
        -4093664535.0 / 808688257.0,
        3962137247.0 / 1805957418.0,
        65686358.0 / 487910083.0,
    ),
    (
        403863854.0 / 491063109.0,
        0.0,
        0.0,
        -5068492393.0 / 434740067.0,
        -411421997.0 / 543043805.0,
        652783627.0 / 914296604.0,
        11173962825.0 / 925320556.0,
        -13158990841.0 / 6184727034.0,
        3936647629.0 / 1978049680.0,
        -160528059.0 / 685178525.0,
        248638103.0 / 1413531060.0,
        0.0,
    ),
)

_DP87_B8 = np.array(
    [
        14005451.0 / 335480064.0,
        0.0,
        0.0,
        0.0,
        0.0,
        -59238493.0 / 1068277825.0,
        181606767.0 / 758867731.0,
        561292985.0 / 797845732.0,
        -1041891430.0 / 1371343529.0,
        760417239.0 / 1151165299.0,
        118820643.0 / 751138087.0,
        -528747749.0 / 2220607170.0,
        1.0 / 4.0,
    ]
)

_DP87_B7 = np.array(
    [
        13451932.0 / 455176623.0,
        0.0,
        0.0,
        0.0,
        0.0,
        -808719846.0 / 976000145.0,
        1757004468.0 / 5645159321.0,
        656045339.0 / 265891186.0,
        -3867574721.0 / 1518517206.0,
        465885868.0 / 322736535.0,
        53011238.0 / 667516719.0,
        2.0 / 45.0,
        0.0,
    ]
)


def dormand_prince87_step(f: RHS, x: np.ndarray, t: float, dt: float) -> Tuple[np.ndarray, float]:
    """Prince-Dormand RK8(7), 13 stages. Returns the 8th order solution and error."""
    k = np.empty((13, x.size))
    k[0] = f(x, t)
    for i in range(1, 13):
        a = _DP87_A[i]
        k[i] = f(x + dt * np.dot(a, k[: len(a)]), t + _DP87_C[i] * dt)
    x8 = x + dt * np.dot(_DP87_B8, k)
    x7 = x + dt * np.dot(_DP87_B7, k)
    return x8, float(np.max(np.abs(x8 - x7)))


# PEFRL coefficients (Omelyan, Mryglod, Folk 2002).
PEFRL_XI = 0.1786178958448091
PEFRL_LAMBDA = -0.2123418310626054
PEFRL_CHI = -0.06626458266981849


def pefrl_step(
    f: RHS,
    x: np.ndarray,
    t: float,
    dt: float,
    layout: Optional[Tuple[Sequence[int], Sequence[int]]] = None,
) -> np.ndarray:
    """
    Position-extended Forest-Ruth-like step, 4th order symplectic.

    Assumes d(position)/dt = velocity. Accelerations are the velocity rows of
    f(x, t). layout gives (position_indices, velocity_indices); default is
    first half positions, second half velocities.
    """
    if layout is None:
        half = x.size // 2
        pos = np.arange(half)
        vel = np.arange(half, 2 * half)
    else:
        pos = np.asarray(layout[0], dtype=int)
        vel = np.asarray(layout[1], dtype=int)

    y = np.array(x, dtype=float, copy=True)
    xi, lam, chi = PEFRL_XI, PEFRL_LAMBDA, PEFRL_CHI
    half_kick = 0.5 * (1.0 - 2.0 * lam)
    middle_drift = 1.0 - 2.0 * (chi + xi)

    y[pos] += xi * dt * y[vel]
    y[vel] += half_kick * dt * f(y, t + xi * dt)[vel]
    y[pos] += chi * dt * y[vel]
    y[vel] += lam * dt * f(y, t + (xi + chi) * dt)[vel]
    y[pos] += middle_drift * dt * y[vel]
    y[vel] += lam * dt * f(y, t + (1.0 - xi - chi) * dt)[vel]
    y[pos] += chi * dt * y[vel]
    y[vel] += half_kick * dt * f(y, t + (1.0 - xi) * dt)[vel]
    y[pos] += xi * dt * y[vel]
    return y
