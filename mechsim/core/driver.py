"""Frame loop advancing a simulation component at a display frame rate."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from mechsim.core.component import SimulationComponent
from mechsim.core.history import SimulationHistory
from mechsim.exceptions import DivergedError

logger = logging.getLogger(__name__)

DEFAULT_FRAME_DT = 1.0 / 60.0


@dataclass
class StepResult:
    """Outcome of one animation frame."""

    time: float
    state: Optional[np.ndarray] = None
    energy: Optional[float] = None
    diverged: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)


class AnimationDriver:
    """
    Reference frame loop: one model.step(frame_dt) per frame.

    Optionally records time, state and total energy of each frame into a
    SimulationHistory. A DivergedError from the model is not propagated: the
    model is paused and the condition is reported through diverged and the
    returned StepResult.
    """

    def __init__(
        self,
        model: SimulationComponent,
        frame_dt: float = DEFAULT_FRAME_DT,
        history: Optional[SimulationHistory] = None,
        on_frame: Optional[Callable[[StepResult], None]] = None,
    ) -> None:
        """
        Args:
            model: component to advance (usually an ODEModel).
            frame_dt: wall-clock seconds per frame.
            history: where to record frames (None = no recording).
            on_frame: callback invoked with each StepResult (e.g. a renderer).
        """
        if frame_dt == 0.0:
            raise ValueError("frame_dt must be non-zero")
        self.model = model
        self.frame_dt = float(frame_dt)
        self.history = history
        self.on_frame = on_frame
        self.diverged = False
        self.frames = 0

    def _observe(self) -> StepResult:
        model = self.model
        state = getattr(model, "state", None)
        energy = getattr(model, "total_energy", None)
        return StepResult(time=getattr(model, "time", 0.0), state=state, energy=energy)

    def step(self, force_step: bool = False) -> StepResult:
        """Advance one frame and return what was observed after it."""
        try:
            self.model.step(self.frame_dt, force_step=force_step)
        except DivergedError as exc:
            self.diverged = True
            pause = getattr(self.model, "pause", None)
            if pause is not None:
                pause()
            logger.warning("simulation paused: %s", exc)
            result = self._observe()
            result.diverged = True
            result.extra["error"] = str(exc)
            return self._emit(result)
        self.frames += 1
        return self._emit(self._observe())

    def _emit(self, result: StepResult) -> StepResult:
        if self.history is not None and not result.diverged:
            self.history.append(time=result.time, state=result.state, energy=result.energy)
        if self.on_frame is not None:
            self.on_frame(result)
        return result

    def run(self, n_frames: int) -> List[StepResult]:
        """Run up to n_frames frames; stops early after a divergence."""
        results = []
        for _ in range(n_frames):
            result = self.step()
            results.append(result)
            if result.diverged:
                break
        return results

    def run_for(self, duration: float) -> List[StepResult]:
        """Run frames covering duration seconds of wall-clock time."""
        n_frames = int(round(abs(duration) / abs(self.frame_dt)))
        return self.run(n_frames)

    def reset(self) -> None:
        """Reset the model and clear the recorded history."""
        self.model.reset()
        self.diverged = False
        self.frames = 0
        if self.history is not None:
            self.history.clear()

    def state_dict(self) -> Dict[str, Any]:
        return {"frames": self.frames, "diverged": self.diverged, "model": self.model.state_dict()}
