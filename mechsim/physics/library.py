"""
Concrete mechanical models: single and double spring, simple and double pendulum.
"""

import math

from mechsim.core.signals import StateComponent
from mechsim.physics import energy
from mechsim.physics.derivatives import (
    DoublePendulumParameters,
    DoubleSpringParameters,
    PendulumParameters,
    SingleSpringParameters,
    double_pendulum_rhs,
    double_spring_rhs,
    pendulum_rhs,
    single_spring_rhs,
)
from mechsim.physics.ode import ODEModel, parameter, state_value


class SingleSpringModel(ODEModel):
    """Vertical mass on a damped spring. Position x grows downward."""

    rhs = staticmethod(single_spring_rhs)
    parameters_class = SingleSpringParameters
    state_components = (
        StateComponent("position", 0, "m", "displacement from natural length"),
        StateComponent("velocity", 1, "m/s"),
    )
    default_state = (2.0, 0.0)
    position_indices = (0,)
    velocity_indices = (1,)

    position = state_value(0)
    velocity = state_value(1)

    mass = parameter()
    spring_constant = parameter()
    damping = parameter()
    gravity = parameter()

    def set_position(self, x: float) -> None:
        """Move the mass to x and release it from rest."""
        self.drag("position", x)

    @property
    def kinetic_energy(self) -> float:
        return energy.single_spring_kinetic(self._state, self._parameters)

    @property
    def elastic_energy(self) -> float:
        return energy.single_spring_elastic(self._state, self._parameters)

    @property
    def gravitational_energy(self) -> float:
        return energy.single_spring_gravitational(self._state, self._parameters)

    @property
    def potential_energy(self) -> float:
        return self.elastic_energy + self.gravitational_energy


class DoubleSpringModel(ODEModel):
    """Two masses hanging from two damped springs in series."""

    rhs = staticmethod(double_spring_rhs)
    parameters_class = DoubleSpringParameters
    state_components = (
        StateComponent("position1", 0, "m"),
        StateComponent("velocity1", 1, "m/s"),
        StateComponent("position2", 2, "m"),
        StateComponent("velocity2", 3, "m/s"),
    )
    default_state = (1.5, 0.0, 3.0, 0.0)
    position_indices = (0, 2)
    velocity_indices = (1, 3)

    position1 = state_value(0)
    velocity1 = state_value(1)
    position2 = state_value(2)
    velocity2 = state_value(3)

    mass1 = parameter()
    mass2 = parameter()
    spring_constant1 = parameter()
    spring_constant2 = parameter()
    damping1 = parameter()
    damping2 = parameter()
    gravity = parameter()
    natural_length1 = parameter()
    natural_length2 = parameter()

    def set_position1(self, x: float) -> None:
        self.drag("position1", x)

    def set_position2(self, x: float) -> None:
        self.drag("position2", x)

    @property
    def kinetic_energy(self) -> float:
        return energy.double_spring_kinetic(self._state, self._parameters)

    @property
    def elastic_energy(self) -> float:
        return energy.double_spring_elastic(self._state, self._parameters)

    @property
    def gravitational_energy(self) -> float:
        return energy.double_spring_gravitational(self._state, self._parameters)

    @property
    def potential_energy(self) -> float:
        return self.elastic_energy + self.gravitational_energy


class PendulumModel(ODEModel):
    """Simple pendulum; theta is measured from the downward vertical."""

    rhs = staticmethod(pendulum_rhs)
    parameters_class = PendulumParameters
    state_components = (
        StateComponent("angle", 0, "rad"),
        StateComponent("angular_velocity", 1, "rad/s"),
    )
    default_state = (math.pi / 4.0, 0.0)
    position_indices = (0,)
    velocity_indices = (1,)

    angle = state_value(0)
    angular_velocity = state_value(1)

    length = parameter()
    mass = parameter()
    gravity = parameter()
    damping = parameter()

    def set_angle(self, theta: float) -> None:
        """Hold the bob at theta with zero angular velocity."""
        self.drag("angle", theta)

    @property
    def bob_position(self):
        """(x, y) of the bob relative to the pivot, y pointing up."""
        theta = self._state[0]
        return self.length * math.sin(theta), -self.length * math.cos(theta)

    @property
    def kinetic_energy(self) -> float:
        return energy.pendulum_kinetic(self._state, self._parameters)

    @property
    def potential_energy(self) -> float:
        return energy.pendulum_potential(self._state, self._parameters)


class DoublePendulumModel(ODEModel):
    """
    Double pendulum.

    The default release from horizontal stays fairly regular for tens of
    seconds; releases near 2.5 rad are chaotic (tiny angle changes grow to
    visibly different motion within about ten seconds).
    """

    rhs = staticmethod(double_pendulum_rhs)
    parameters_class = DoublePendulumParameters
    state_components = (
        StateComponent("angle1", 0, "rad"),
        StateComponent("angle2", 1, "rad"),
        StateComponent("angular_velocity1", 2, "rad/s"),
        StateComponent("angular_velocity2", 3, "rad/s"),
    )
    default_state = (math.pi / 2.0, math.pi / 2.0, 0.0, 0.0)
    position_indices = (0, 1)
    velocity_indices = (2, 3)

    angle1 = state_value(0)
    angle2 = state_value(1)
    angular_velocity1 = state_value(2)
    angular_velocity2 = state_value(3)

    length1 = parameter()
    length2 = parameter()
    mass1 = parameter()
    mass2 = parameter()
    gravity = parameter()
    damping = parameter()

    def set_angle1(self, theta: float) -> None:
        self.drag("angle1", theta)

    def set_angle2(self, theta: float) -> None:
        self.drag("angle2", theta)

    @property
    def bob_positions(self):
        """((x1, y1), (x2, y2)) relative to the pivot, y pointing up."""
        theta1, theta2 = self._state[0], self._state[1]
        x1 = self.length1 * math.sin(theta1)
        y1 = -self.length1 * math.cos(theta1)
        x2 = x1 + self.length2 * math.sin(theta2)
        y2 = y1 - self.length2 * math.cos(theta2)
        return (x1, y1), (x2, y2)

    @property
    def kinetic_energy(self) -> float:
        return energy.double_pendulum_kinetic(self._state, self._parameters)

    @property
    def potential_energy(self) -> float:
        return energy.double_pendulum_potential(self._state, self._parameters)
