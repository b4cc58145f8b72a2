"""
Execution-context position sources.

Deadlines are compared against `current_position()`. On-chain this is a block
number; off-chain deployments typically use unix seconds.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol


class PositionSource(Protocol):
    def current_position(self) -> int:
        ...


class ManualClock:
    """Explicitly driven position (tests, simulations, block replays)."""

    def __init__(self, position: int = 0) -> None:
        if not isinstance(position, int) or isinstance(position, bool) or position < 0:
            raise ValueError("position must be a non-negative int")
        self._lock = threading.Lock()
        self._position = position

    def current_position(self) -> int:
        with self._lock:
            return self._position

    def advance(self, delta: int = 1) -> int:
        if not isinstance(delta, int) or isinstance(delta, bool) or delta < 0:
            raise ValueError("delta must be a non-negative int")
        with self._lock:
            self._position += delta
            return self._position

    def set(self, position: int) -> None:
        if not isinstance(position, int) or isinstance(position, bool) or position < 0:
            raise ValueError("position must be a non-negative int")
        with self._lock:
            if position < self._position:
                raise ValueError("position must not move backwards")
            self._position = position


class WallClock:
    """Unix seconds from the system clock."""

    def current_position(self) -> int:
        return int(time.time())
