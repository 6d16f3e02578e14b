"""Named description of state vector entries (name, index, unit)."""

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple


@dataclass(frozen=True)
class StateComponent:
    """One entry of a state vector: name, position in the vector, unit."""

    name: str
    index: int
    unit: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"index must be >= 0, got {self.index}")


def component_index(components: Sequence[StateComponent]) -> Dict[str, int]:
    """Map component name -> state index."""
    return {c.name: c.index for c in components}


def check_components(components: Sequence[StateComponent]) -> Tuple[StateComponent, ...]:
    """Validate that components cover indices 0..n-1 exactly once, sorted by index."""
    ordered = tuple(sorted(components, key=lambda c: c.index))
    if [c.index for c in ordered] != list(range(len(ordered))):
        raise ValueError(f"state components must cover indices 0..{len(ordered) - 1} once")
    names = [c.name for c in ordered]
    if len(set(names)) != len(names):
        raise ValueError(f"duplicate state component names: {names}")
    return ordered
