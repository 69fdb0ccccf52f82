"""Motions, dances and gestures of a four-servo biped robot.

Servos are ordered left hip (YL), right hip (YR), left foot (RL) and right
foot (RR). Gaits are built from coordinated sine oscillations, and poses from
timed linear moves.
"""

from __future__ import annotations

import enum
import math
import time
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from marvinbot.oscillator import Oscillator
from marvinbot.sounds import Song, SoundPlayer, note_frequency

__all__ = [
    "FORWARD",
    "BACKWARD",
    "LEFT",
    "RIGHT",
    "SMALL",
    "MEDIUM",
    "BIG",
    "SERVO_LIMIT_DEFAULT",
    "Gesture",
    "Marvin",
]

FORWARD = 1
BACKWARD = -1
LEFT = 1
RIGHT = -1
SMALL = 5
MEDIUM = 15
BIG = 30

# Default servo speed limit, degrees per second.
SERVO_LIMIT_DEFAULT = 240

_SERVO_COUNT = 4
_HOME = (90, 90, 90, 90)
_STEP_MS = 10

_E5 = note_frequency("E5")
_A5 = note_frequency("A5")
_D6 = note_frequency("D6")
_G6 = note_frequency("G6")


class Gesture(enum.IntEnum):
    """Expressive gestures combining poses, dances and sounds."""

    HAPPY = 0
    SUPER_HAPPY = 1
    SAD = 2
    SLEEPING = 3
    FART = 4
    CONFUSED = 5
    LOVE = 6
    ANGRY = 7
    FRETFUL = 8
    MAGIC = 9
    WAVE = 10
    VICTORY = 11
    FAIL = 12


def _rad(degrees: float) -> float:
    return degrees * math.pi / 180


def _half(value: int) -> int:
    """Integer half, truncated toward zero."""
    return int(value / 2)


def _monotonic_millis() -> int:
    return int(time.monotonic() * 1000)


class Marvin:
    """A biped robot driven by four oscillators and a sound player.

    ``millis`` is a millisecond clock and ``sleep`` waits for a number of
    seconds; both default to the real ones.
    """

    def __init__(
        self,
        oscillators: Sequence[Oscillator],
        pins: Sequence[int],
        player: SoundPlayer,
        millis: Optional[Callable[[], int]] = None,
        sleep: Optional[Callable[[float], object]] = None,
    ):
        if len(oscillators) != _SERVO_COUNT or len(pins) != _SERVO_COUNT:
            raise ValueError(f"exactly {_SERVO_COUNT} servos and pins are needed")
        self.oscillators = list(oscillators)
        self.pins = list(pins)
        self.player = player
        self.millis = millis or _monotonic_millis
        self.sleep = sleep or time.sleep
        self.attach_servos()
        self.is_resting = False

    # -- timing ---------------------------------------------------------

    def _delay(self, ms: float) -> None:
        self.sleep(ms / 1000.0)

    def _wait_until(self, deadline: float) -> None:
        remaining = deadline - self.millis()
        if remaining > 0:
            self._delay(remaining)

    # -- calibration ----------------------------------------------------

    def load_calibration(self, directory: Union[str, Path]) -> None:
        """Read trims from ``<directory>/<i>.txt``; a missing file means zero."""
        directory = Path(directory)
        for index, oscillator in enumerate(self.oscillators):
            try:
                text = (directory / f"{index}.txt").read_text().strip()
            except OSError:
                text = "0"
            trim = int(text) if text else 0
            if trim > 128:
                trim -= 256
            oscillator.trim = trim

    def save_trims(self, directory: Union[str, Path]) -> None:
        """Write each servo's trim to ``<directory>/<i>.txt``."""
        directory = Path(directory)
        for index, oscillator in enumerate(self.oscillators):
            (directory / f"{index}.txt").write_text(str(oscillator.trim))

    def set_trims(self, yl: int, yr: int, rl: int, rr: int) -> None:
        """Set calibration offsets of the four servos."""
        for oscillator, trim in zip(self.oscillators, (yl, yr, rl, rr)):
            oscillator.trim = trim

    # -- attach & detach ------------------------------------------------

    def attach_servos(self) -> None:
        """Attach every oscillator to its pin."""
        for oscillator, pin in zip(self.oscillators, self.pins):
            oscillator.attach(pin)

    def detach_servos(self) -> None:
        """Release every servo."""
        for oscillator in self.oscillators:
            oscillator.detach()

    def _wake(self) -> None:
        self.attach_servos()
        self.is_resting = False

    # -- basic motion ---------------------------------------------------

    def move_servos(self, time: int, targets: Sequence[int]) -> None:
        """Move all servos linearly to ``targets`` over ``time`` milliseconds."""
        targets = list(targets)
        if len(targets) != _SERVO_COUNT:
            raise ValueError(f"exactly {_SERVO_COUNT} targets are needed")
        self._wake()
        final_time = self.millis() + time
        if time > _STEP_MS:
            steps = time / _STEP_MS
            increments = [
                (target - osc.position) / steps
                for osc, target in zip(self.oscillators, targets)
            ]
            while self.millis() < final_time:
                partial_time = self.millis() + _STEP_MS
                for osc, increment in zip(self.oscillators, increments):
                    osc.set_position(int(osc.position + increment))
                self._wait_until(partial_time)
        else:
            for osc, target in zip(self.oscillators, targets):
                osc.set_position(target)
            self._wait_until(final_time)

        # A speed limit may keep the servos short of the target; keep pushing.
        while any(osc.position != t for osc, t in zip(self.oscillators, targets)):
            for osc, target in zip(self.oscillators, targets):
                osc.set_position(target)
            self._wait_until(self.millis() + _STEP_MS)

    def move_single(self, position: int, servo_number: int) -> None:
        """Set one servo to ``position``; positions outside 0-180 become 90."""
        if position > 180 or position < 0:
            position = 90
        self._wake()
        if 0 <= servo_number < _SERVO_COUNT:
            self.oscillators[servo_number].set_position(position)

    def oscillate_servos(
        self,
        amplitudes: Sequence[int],
        offsets: Sequence[int],
        period: int,
        phase_diff: Sequence[float],
        cycle: float = 1.0,
    ) -> None:
        """Oscillate every servo for ``cycle`` periods of ``period`` milliseconds."""
        for osc, amplitude, offset, phase in zip(
            self.oscillators, amplitudes, offsets, phase_diff
        ):
            osc.offset = offset
            osc.amplitude = amplitude
            osc.set_period(period)
            osc.phase0 = phase
        deadline = period * cycle + self.millis()
        while self.millis() <= deadline:
            for osc in self.oscillators:
                osc.refresh()
            self._delay(1)

    def _execute(self, amplitudes, offsets, period, phase_diff, steps=1.0) -> None:
        self._wake()
        cycles = int(steps)
        for _ in range(cycles):
            self.oscillate_servos(amplitudes, offsets, period, phase_diff)
        self.oscillate_servos(amplitudes, offsets, period, phase_diff, steps - cycles)

    def home(self) -> None:
        """Return to the rest position and release the servos, if not resting."""
        if self.is_resting:
            return
        self.move_servos(500, _HOME)
        self.detach_servos()
        self.is_resting = True

    # -- motion sequences -----------------------------------------------

    def jump(self, steps: float = 1, period: int = 2000) -> None:
        """Rise on the feet and come back down."""
        self.move_servos(period, (90, 90, 150, 30))
        self.move_servos(period, _HOME)

    def walk(self, steps: float = 4, period: int = 1000, direction: int = FORWARD) -> None:
        """Walk forward or backward."""
        phase = _rad(direction * -90)
        self._execute((30, 30, 20, 20), (0, 0, 4, -4), period, (0, 0, phase, phase), steps)

    def turn(self, steps: float = 4, period: int = 2000, direction: int = LEFT) -> None:
        """Walk in an arc to the left or right."""
        hips = (30, 10) if direction == LEFT else (10, 30)
        self._execute(
            (*hips, 20, 20),
            (0, 0, 4, -4),
            period,
            (0, 0, _rad(-90), _rad(-90)),
            steps,
        )

    def bend(self, steps: int = 1, period: int = 1400, direction: int = LEFT) -> None:
        """Lean to one side and back, ``steps`` times."""
        bend1 = [90, 90, 62, 35]
        bend2 = [90, 90, 62, 105]
        if direction == -1:
            bend1[2:] = [180 - 35, 180 - 60]
            bend2[2:] = [180 - 105, 180 - 60]
        duration = 800
        for _ in range(steps):
            self.move_servos(duration // 2, bend1)
            self.move_servos(duration // 2, bend2)
            self._delay(period * 0.8)
            self.move_servos(500, _HOME)

    def shake_leg(self, steps: int = 1, period: int = 2000, direction: int = RIGHT) -> None:
        """Stand on one foot and shake the other leg."""
        moves = 2
        leg1 = [90, 90, 58, 35]
        leg2 = [90, 90, 58, 120]
        leg3 = [90, 90, 58, 60]
        if direction == -1:
            leg1[2:] = [180 - 35, 180 - 58]
            leg2[2:] = [180 - 120, 180 - 58]
            leg3[2:] = [180 - 60, 180 - 58]
        bend_time = 1000
        period = max(period - bend_time, 200 * moves)
        shake_time = int(period / (2 * moves))
        for _ in range(steps):
            self.move_servos(bend_time // 2, leg1)
            self.move_servos(bend_time // 2, leg2)
            for _ in range(moves):
                self.move_servos(shake_time, leg3)
                self.move_servos(shake_time, leg2)
            self.move_servos(500, _HOME)
        self._delay(period)

    def updown(self, steps: float = 1, period: int = 1000, height: int = 20) -> None:
        """Bob up and down on the feet."""
        self._execute(
            (0, 0, height, height),
            (0, 0, height, -height),
            period,
            (0, 0, _rad(-90), _rad(90)),
            steps,
        )

    def swing(self, steps: float = 1, period: int = 1000, height: int = 20) -> None:
        """Sway from side to side."""
        self._execute(
            (0, 0, height, height),
            (0, 0, _half(height), -_half(height)),
            period,
            (0, 0, _rad(0), _rad(0)),
            steps,
        )

    def tiptoe_swing(self, steps: float = 1, period: int = 900, height: int = 20) -> None:
        """Sway from side to side on tiptoe."""
        self._execute(
            (0, 0, height, height),
            (0, 0, height, -height),
            period,
            (0, 0, 0, 0),
            steps,
        )

    def jitter(self, steps: float = 1, period: int = 500, height: int = 20) -> None:
        """Twitch the hips quickly; ``height`` is capped at 25."""
        height = min(25, height)
        self._execute(
            (height, height, 0, 0),
            (0, 0, 0, 0),
            period,
            (_rad(-90), _rad(90), 0, 0),
            steps,
        )

    def ascending_turn(self, steps: float = 1, period: int = 900, height: int = 20) -> None:
        """Jitter while moving up and down; ``height`` is capped at 13."""
        height = min(13, height)
        self._execute(
            (height, height, height, height),
            (0, 0, height + 4, -height + 4),
            period,
            (_rad(-90), _rad(90), _rad(-90), _rad(90)),
            steps,
        )

    def moonwalker(
        self, steps: float = 1, period: int = 900, height: int = 20, direction: int = LEFT
    ) -> None:
        """Glide sideways with a travelling wave through the feet."""
        phi = -direction * 90
        self._execute(
            (0, 0, height, height),
            (0, 0, _half(height) + 2, -_half(height) - 2),
            period,
            (0, 0, _rad(phi), _rad(-60 * direction + phi)),
            steps,
        )

    def crusaito(
        self, steps: float = 1, period: int = 900, height: int = 20, direction: int = FORWARD
    ) -> None:
        """A mixture of moonwalk and walk."""
        self._execute(
            (25, 25, height, height),
            (0, 0, _half(height) + 4, -_half(height) - 4),
            period,
            (90, 90, _rad(0), _rad(-60 * direction)),
            steps,
        )

    def flapping(
        self, steps: float = 1, period: int = 1000, height: int = 20, direction: int = FORWARD
    ) -> None:
        """Flap the feet while rocking the hips."""
        self._execute(
            (12, 12, height, height),
            (0, 0, height - 10, -height + 10),
            period,
            (_rad(0), _rad(180), _rad(-90 * direction), _rad(90 * direction)),
            steps,
        )

    # -- gestures -------------------------------------------------------

    def play_gesture(self, gesture: Union[Gesture, int]) -> None:
        """Perform ``gesture``; gestures without a routine do nothing."""
        try:
            gesture = Gesture(gesture)
        except ValueError:
            return
        routine = {
            Gesture.HAPPY: self._happy,
            Gesture.SUPER_HAPPY: self._super_happy,
            Gesture.SAD: self._sad,
            Gesture.SLEEPING: self._sleeping,
            Gesture.CONFUSED: self._confused,
            Gesture.LOVE: self._love,
            Gesture.ANGRY: self._angry,
            Gesture.FRETFUL: self._fretful,
            Gesture.VICTORY: self._victory,
            Gesture.FAIL: self._fail,
        }.get(gesture)
        if routine is not None:
            routine()

    def _happy(self) -> None:
        self.player.tone(_E5, 50, 30)
        self.player.sing(Song.HAPPY_SHORT)
        self.swing(1, 800, 20)
        self.player.sing(Song.HAPPY_SHORT)
        self.home()

    def _super_happy(self) -> None:
        self.player.sing(Song.HAPPY)
        self.tiptoe_swing(1, 500, 20)
        self.player.sing(Song.SUPER_HAPPY)
        self.tiptoe_swing(1, 500, 20)
        self.home()

    def _sad(self) -> None:
        self.move_servos(700, (110, 70, 20, 160))
        for start, stop in ((880, 830), (830, 790), (790, 740), (740, 700), (700, 669)):
            self.player.bend_tones(start, stop, 1.02, 20, 200)
        self._delay(500)
        self.home()
        self._delay(300)

    def _sleeping(self) -> None:
        self.move_servos(700, (100, 80, 60, 120))
        for _ in range(4):
            self.player.bend_tones(100, 200, 1.04, 10, 10)
            self.player.bend_tones(200, 300, 1.04, 10, 10)
            self.player.bend_tones(300, 500, 1.04, 10, 10)
            self._delay(500)
            self.player.bend_tones(400, 250, 1.04, 10, 1)
            self.player.bend_tones(250, 100, 1.04, 10, 1)
            self._delay(500)
        self.player.sing(Song.CUDDLY)
        self.home()

    def _confused(self) -> None:
        self.move_servos(300, (110, 70, 90, 90))
        self.player.sing(Song.CONFUSED)
        self._delay(500)
        self.home()

    def _love(self) -> None:
        self.player.sing(Song.CUDDLY)
        self.crusaito(2, 1500, 15, 1)
        self.home()
        self.player.sing(Song.HAPPY_SHORT)

    def _angry(self) -> None:
        self.move_servos(300, (90, 90, 70, 110))
        self.player.tone(_A5, 100, 30)
        self.player.bend_tones(_A5, _D6, 1.02, 7, 4)
        self.player.bend_tones(_D6, _G6, 1.02, 10, 1)
        self.player.bend_tones(_G6, _A5, 1.02, 10, 1)
        self._delay(15)
        self.player.bend_tones(_A5, _E5, 1.02, 20, 4)
        self._delay(400)
        self.move_servos(200, (110, 110, 90, 90))
        self.player.bend_tones(_A5, _D6, 1.02, 20, 4)
        self.move_servos(200, (70, 70, 90, 90))
        self.player.bend_tones(_A5, _E5, 1.02, 20, 4)
        self.home()

    def _fretful(self) -> None:
        self.player.bend_tones(_A5, _D6, 1.02, 20, 4)
        self.player.bend_tones(_A5, _E5, 1.02, 20, 4)
        self._delay(300)
        for _ in range(4):
            self.move_servos(100, (90, 90, 90, 110))
            self.home()
        self._delay(500)
        self.home()

    def _victory(self) -> None:
        for i in range(60):
            self.move_servos(10, (90, 90, 90 + i, 90 - i))
            self.player.tone(1600 + i * 20, 15, 1)
        for i in range(60):
            self.move_servos(10, (90, 90, 150 - i, 30 + i))
            self.player.tone(2800 + i * 20, 15, 1)
        self.tiptoe_swing(1, 500, 20)
        self.player.sing(Song.SUPER_HAPPY)
        self.tiptoe_swing(1, 500, 20)
        self.home()

    def _fail(self) -> None:
        for foot, frequency in ((70, 900), (55, 600), (42, 300)):
            self.move_servos(300, (90, 90, foot, 35))
            self.player.tone(frequency, 200, 1)
        self.move_servos(300, (90, 90, 34, 35))
        self.detach_servos()
        self.player.tone(150, 2200, 1)
        self._delay(600)
        self.home()

    # -- servo limiter --------------------------------------------------

    def enable_servo_limit(self, diff_limit: int = SERVO_LIMIT_DEFAULT) -> None:
        """Limit every servo to ``diff_limit`` degrees per second."""
        for osc in self.oscillators:
            osc.set_limiter(diff_limit)

    def disable_servo_limit(self) -> None:
        """Remove the speed limit from every servo."""
        for osc in self.oscillators:
            osc.disable_limiter()