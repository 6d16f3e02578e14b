"""Core: component interface, state description, history and frame driver."""

from mechsim.core.component import SimulationComponent
from mechsim.core.signals import StateComponent
from mechsim.core.history import SimulationHistory
from mechsim.core.driver import AnimationDriver, StepResult

__all__ = ["SimulationComponent", "StateComponent", "SimulationHistory", "AnimationDriver", "StepResult"]
