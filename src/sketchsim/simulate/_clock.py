"""Simulated run clock."""

from __future__ import annotations

import math
import time
from collections.abc import Callable


class SimulationClock:
    """Host time since run start, scaled by the speed multiplier.

    A speed change folds the time elapsed so far into a base offset, so it
    only affects time from that moment on.  ``stop()`` freezes the reading.
    """

    def __init__(self, speed: float = 1.0, time_source: Callable[[], float] = time.monotonic):
        if speed <= 0:
            raise ValueError("Clock speed must be positive")
        self._speed = speed
        self._time_source = time_source
        self._base_ms = 0.0
        self._segment_start: float | None = None

    @property
    def speed(self) -> float:
        return self._speed

    def start(self) -> None:
        """Restart from zero."""
        self._base_ms = 0.0
        self._segment_start = self._time_source()

    def stop(self) -> None:
        if self._segment_start is not None:
            self._base_ms = self.elapsed_ms()
            self._segment_start = None

    def reset(self) -> None:
        self._base_ms = 0.0
        self._segment_start = None

    def set_speed(self, speed: float) -> None:
        if speed <= 0:
            raise ValueError("Clock speed must be positive")
        if self._segment_start is not None:
            self._base_ms = self.elapsed_ms()
            self._segment_start = self._time_source()
        self._speed = speed

    def elapsed_ms(self) -> float:
        """Scaled milliseconds since ``start()``."""
        if self._segment_start is None:
            return self._base_ms
        return self._base_ms + (self._time_source() - self._segment_start) * 1000.0 * self._speed

    def millis(self) -> int:
        return math.floor(self.elapsed_ms())

    def micros(self) -> int:
        return math.floor(self.elapsed_ms() * 1000)

    def seconds(self) -> float:
        return self.elapsed_ms() / 1000.0
