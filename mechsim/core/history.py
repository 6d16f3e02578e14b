"""In-memory per-frame recording of a simulation run."""

from typing import Any, Dict, List, Optional

import numpy as np


class SimulationHistory:
    """
    Buffer of per-frame records (time, state, energies, ...).

    Each append() adds one value per key; get() returns a key's series as a
    numpy array.
    """

    def __init__(self, max_length: Optional[int] = None) -> None:
        """
        Args:
            max_length: keep only the last max_length frames (None = unbounded).
        """
        if max_length is not None and max_length <= 0:
            raise ValueError(f"max_length must be positive, got {max_length}")
        self._max_length = max_length
        self._data: Dict[str, List[Any]] = {}
        self._frame_count = 0

    def append(self, **record: Any) -> None:
        """Add one frame (key -> value)."""
        for key, value in record.items():
            if isinstance(value, np.ndarray):
                value = value.copy()
            self._data.setdefault(key, []).append(value)
        self._frame_count += 1
        if self._max_length is not None and self._frame_count > self._max_length:
            for key in self._data:
                self._data[key] = self._data[key][-self._max_length:]
            self._frame_count = self._max_length

    def clear(self) -> None:
        self._data.clear()
        self._frame_count = 0

    def keys(self) -> List[str]:
        return list(self._data.keys())

    def get(self, key: str) -> np.ndarray:
        """Series for key (empty array if never recorded)."""
        if key not in self._data:
            return np.array([])
        return np.array(self._data[key])

    def last(self, key: str) -> Any:
        """Most recent value recorded under key."""
        if not self._data.get(key):
            raise KeyError(f"no values recorded for '{key}'")
        return self._data[key][-1]

    def to_dict(self, keys: Optional[List[str]] = None) -> Dict[str, np.ndarray]:
        """All series (or those named in keys) as arrays."""
        keys = keys or list(self._data.keys())
        return {k: self.get(k) for k in keys if k in self._data}

    def __len__(self) -> int:
        return self._frame_count
