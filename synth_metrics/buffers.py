"""Cyclical shift registers and the factory that populates them.

Google-style docstrings to ease automatic documentation.
"""

from __future__ import annotations

import threading
from typing import List, Sequence, Tuple

from .formatting import formatter_for


class Buffer:
    """Fixed-length sequence of pre-rendered values with a wrapping cursor.

    All state is guarded by the buffer's own lock; callers never lock
    directly.

    Args:
        values (Sequence[str]): Initial values (at least one).
        numeric_type (str): Rendering style of the values (exp/float/int).
        algorithm (str): Progression rule that produced them (up/down/random).
    """

    def __init__(self, values: Sequence[str], numeric_type: str, algorithm: str) -> None:
        if not values:
            raise ValueError("buffer needs at least one value")
        self.numeric_type = numeric_type
        self.algorithm = algorithm
        self._lock = threading.Lock()
        self._values: List[str] = list(values)
        self._cursor = 0

    @property
    def name(self) -> str:
        return f"{self.numeric_type}_{self.algorithm}"

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __repr__(self) -> str:
        return f"Buffer({self.name!r}, len={len(self)})"

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    @property
    def values(self) -> Tuple[str, ...]:
        """Immutable copy of the current values."""
        with self._lock:
            return tuple(self._values)

    def advance(self) -> str:
        """Move the cursor one step (wrapping) and return the new current value."""
        with self._lock:
            self._cursor = (self._cursor + 1) % len(self._values)
            return self._values[self._cursor]

    def current(self) -> str:
        with self._lock:
            return self._values[self._cursor]

    def state(self) -> Tuple[int, Tuple[str, ...]]:
        """Cursor and values read atomically."""
        with self._lock:
            return self._cursor, tuple(self._values)

    def replace_values(self, new_values: Sequence[str]) -> None:
        """Swap the values in place.

        The cursor is kept when the length is unchanged and reset to 0
        otherwise.

        Raises:
            ValueError: if `new_values` is empty.
        """
        if not new_values:
            raise ValueError("buffer needs at least one value")
        with self._lock:
            if len(new_values) != len(self._values):
                self._cursor = 0
            self._values = list(new_values)


def generate_values(numeric_type: str, algorithm: str, size: int, limit: int, tail: int, mod: float) -> List[str]:
    """Render `size` values for `(numeric_type, algorithm)`.

    Random values draw fresh entropy per element on every call.

    Raises:
        ValueError: on an unknown type/algorithm or a size below 1.
    """
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")
    fmt = formatter_for(algorithm)
    return [fmt(i, limit, tail, mod, numeric_type) for i in range(size)]


def build_buffer(numeric_type: str, algorithm: str, size: int, limit: int, tail: int, mod: float) -> Buffer:
    return Buffer(generate_values(numeric_type, algorithm, size, limit, tail, mod), numeric_type, algorithm)
