from __future__ import annotations

import threading


class TaskRegistry:
    """Saturation counter for the long-running tasks a healthy process needs.

    Each task occupies one slot when its loop starts and releases it when the
    loop ends. The process is healthy only while every slot is occupied.
    """

    def __init__(self, capacity: int) -> None:
        capacity = int(capacity)
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._occupied = 0
        self._cond = threading.Condition(threading.Lock())

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def occupied(self) -> int:
        with self._cond:
            return self._occupied

    def occupy(self) -> None:
        with self._cond:
            while self._occupied >= self._capacity:
                self._cond.wait()
            self._occupied += 1

    def release(self) -> None:
        with self._cond:
            if self._occupied <= 0:
                raise RuntimeError("release() without a matching occupy()")
            self._occupied -= 1
            self._cond.notify()

    def is_saturated(self) -> bool:
        with self._cond:
            return self._occupied == self._capacity

    def __repr__(self) -> str:
        return f"TaskRegistry(occupied={self.occupied}, capacity={self._capacity})"
