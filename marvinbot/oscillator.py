"""Sinusoidal oscillation of a hobby servo, with an optional speed limiter."""

from __future__ import annotations

import math
import time
from typing import Callable, Optional, Protocol

__all__ = ["Servo", "Oscillator"]

_HOME = 90


class Servo(Protocol):
    """A positional servo driven in degrees."""

    def attached(self) -> bool: ...

    def attach(self, pin: int) -> object: ...

    def detach(self) -> None: ...

    def write(self, angle: int) -> None: ...


def _monotonic_millis() -> int:
    return int(time.monotonic() * 1000)


def _round_half_away(value: float) -> int:
    magnitude = math.floor(abs(value) + 0.5)
    return int(magnitude if value >= 0 else -magnitude)


class Oscillator:
    """Drives ``servo`` around 90 degrees as ``offset + amplitude * sin(phase + phase0)``.

    ``trim`` is a calibration offset added to every command sent to the servo.
    ``diff_limit`` caps the speed in degrees per second; zero disables it.
    """

    def __init__(
        self,
        servo: Servo,
        millis: Optional[Callable[[], int]] = None,
        trim: int = 0,
    ):
        self.servo = servo
        self.millis = millis or _monotonic_millis
        self.trim = trim
        self.diff_limit = 0
        self.amplitude = 45
        self.offset = 0
        self.phase0 = 0.0
        self.phase = 0.0
        self.stopped = False
        self.reverse = False
        self.sampling_period = 30
        self._period = 2000
        self.increment = 0.0
        self._pos = _HOME
        self._previous_millis = 0
        self._previous_command_millis = 0
        self.set_period(self._period)

    @property
    def position(self) -> int:
        """Last commanded position, without trim."""
        return self._pos

    @property
    def period(self) -> int:
        """Oscillation period in milliseconds."""
        return self._period

    def attach(self, pin: int, reverse: bool = False) -> None:
        """Attach the servo to ``pin`` and reset to the home position and defaults."""
        if self.servo.attached():
            return
        self.servo.attach(pin)
        self._pos = _HOME
        self.servo.write(_HOME)
        self._previous_command_millis = self.millis()
        self.sampling_period = 30
        self.set_period(2000)
        self._previous_millis = 0
        self.amplitude = 45
        self.phase = 0.0
        self.phase0 = 0.0
        self.offset = 0
        self.stopped = False
        self.reverse = reverse

    def detach(self) -> None:
        """Release the servo if it is attached."""
        if self.servo.attached():
            self.servo.detach()

    def set_period(self, period: int) -> None:
        """Set the period in milliseconds and recompute the phase step."""
        samples = period // self.sampling_period
        if samples <= 0:
            raise ValueError(
                f"period {period} ms is shorter than the sampling period "
                f"{self.sampling_period} ms"
            )
        self._period = period
        self.increment = 2 * math.pi / samples

    def set_position(self, position: int) -> None:
        """Move the servo towards ``position`` degrees."""
        self._write(position)

    def _next_sample(self) -> bool:
        now = self.millis()
        if now - self._previous_millis > self.sampling_period:
            self._previous_millis = now
            return True
        return False

    def refresh(self) -> None:
        """Take a sample if the sampling period has passed; call this often."""
        if not self._next_sample():
            return
        if not self.stopped:
            pos = _round_half_away(
                self.amplitude * math.sin(self.phase + self.phase0) + self.offset
            )
            if self.reverse:
                pos = -pos
            self._write(pos + _HOME)
        # The phase keeps advancing while stopped so coordination is kept.
        self.phase += self.increment

    def _write(self, position: int) -> None:
        now = self.millis()
        if self.diff_limit > 0:
            elapsed = now - self._previous_command_millis
            limit = max(1, int(elapsed * self.diff_limit / 1000))
            if abs(position - self._pos) > limit:
                self._pos += -limit if position < self._pos else limit
            else:
                self._pos = position
        else:
            self._pos = position
        self._previous_command_millis = now
        self.servo.write(self._pos + self.trim)

    def stop(self) -> None:
        """Hold the servo still while the phase keeps running."""
        self.stopped = True

    def play(self) -> None:
        """Resume oscillating."""
        self.stopped = False

    def reset(self) -> None:
        """Rewind the phase to zero."""
        self.phase = 0.0

    def set_limiter(self, diff_limit: int) -> None:
        """Limit the speed to ``diff_limit`` degrees per second."""
        self.diff_limit = diff_limit

    def disable_limiter(self) -> None:
        """Remove the speed limit."""
        self.diff_limit = 0