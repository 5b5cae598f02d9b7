"""
Trail Buffer
============
Bounded history of a ball's recent positions, drawn as a connected line.

Stored as a fixed (capacity, 3) array with a write cursor, so pushing a
point every frame never reallocates. Once full, each new point overwrites
the oldest one.
"""

import numpy as np

TRAIL_CAPACITY = 200


class Trail:
    """Fixed-capacity FIFO of 3-D points."""

    def __init__(self, capacity: int = TRAIL_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"Trail capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._buffer = np.zeros((capacity, 3))
        self._cursor = 0     # next slot to write
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def push(self, point: np.ndarray) -> None:
        self._buffer[self._cursor] = point
        self._cursor = (self._cursor + 1) % self.capacity
        self._count = min(self._count + 1, self.capacity)

    def clear(self) -> None:
        self._cursor = 0
        self._count = 0

    def points(self) -> np.ndarray:
        """Copy of the stored points, oldest first, shape (len, 3)."""
        if self._count < self.capacity:
            return self._buffer[:self._count].copy()
        return np.concatenate((self._buffer[self._cursor:],
                               self._buffer[:self._cursor]))

    @property
    def oldest(self) -> np.ndarray:
        if self._count == 0:
            raise IndexError("Trail is empty")
        start = (self._cursor - self._count) % self.capacity
        return self._buffer[start].copy()

    @property
    def newest(self) -> np.ndarray:
        if self._count == 0:
            raise IndexError("Trail is empty")
        return self._buffer[(self._cursor - 1) % self.capacity].copy()
