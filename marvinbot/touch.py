"""Capacitive touch button with press-and-hold detection."""

from __future__ import annotations

import time
from typing import Callable, Optional

__all__ = ["TouchSensor"]


def _monotonic_millis() -> int:
    return int(time.monotonic() * 1000)


class TouchSensor:
    """Reports touches and touches held for at least ``hold_time`` milliseconds.

    ``read_pin`` returns the current pin level (truthy when touched).
    """

    def __init__(
        self,
        read_pin: Callable[[], object],
        hold_time: int = 2000,
        millis: Optional[Callable[[], int]] = None,
    ):
        self.read_pin = read_pin
        self.hold_time = hold_time
        self.millis = millis or _monotonic_millis
        self.held = False
        self._start_time: Optional[int] = None

    def is_touched(self) -> bool:
        """True while the pad is touched."""
        return bool(self.read_pin())

    def is_touch_held(self) -> bool:
        """True once the current touch has lasted ``hold_time``; releasing resets it."""
        if self.is_touched():
            if self._start_time is None:
                self._start_time = self.millis()
            if self.millis() - self._start_time >= self.hold_time:
                self.held = True
                return True
        else:
            self._start_time = None
            self.held = False
        return False