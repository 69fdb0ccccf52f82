"""Buzzer tones, frequency sweeps and the robot's repertoire of short songs."""

from __future__ import annotations

import enum
import re
import time
from typing import Callable, Iterator, NamedTuple, Optional, Protocol, Union

__all__ = [
    "BOOT",
    "START_LISTENING",
    "END_LISTENING",
    "Buzzer",
    "Song",
    "SoundPlayer",
    "note_frequency",
]

BOOT = "boot.wav"
START_LISTENING = "startlisten.wav"
END_LISTENING = "endlisten.wav"

_NOTE_RE = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)$")
_PITCH_CLASS = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


def note_frequency(name: str) -> float:
    """Equal-tempered frequency in Hz of a note such as ``"A4"``, ``"C#6"`` or ``"Bb3"``.

    Tuned to A4 = 440 Hz and rounded to two decimals.
    """
    match = _NOTE_RE.match(name)
    if match is None:
        raise ValueError(f"not a note name: {name!r}")
    letter, accidental, octave = match.groups()
    semitone = _PITCH_CLASS[letter.upper()]
    if accidental == "#":
        semitone += 1
    elif accidental == "b":
        semitone -= 1
    midi = (int(octave) + 1) * 12 + semitone
    return round(440.0 * 2.0 ** ((midi - 69) / 12), 2)


class Buzzer(Protocol):
    """A piezo buzzer that can play a square wave for a while."""

    def tone(self, frequency: float, duration: int) -> None: ...


class Song(enum.IntEnum):
    """The songs the robot can sing."""

    CONNECTION = 0
    DISCONNECTION = 1
    BUTTON_PUSHED = 2
    MODE1 = 3
    MODE2 = 4
    MODE3 = 5
    SURPRISE = 6
    OH_OOH = 7
    OH_OOH2 = 8
    CUDDLY = 9
    SLEEPING = 10
    HAPPY = 11
    SUPER_HAPPY = 12
    HAPPY_SHORT = 13
    SAD = 14
    CONFUSED = 15
    FART1 = 16
    FART2 = 17
    FART3 = 18


class _Tone(NamedTuple):
    frequency: float
    duration: int
    silent: int


class _Bend(NamedTuple):
    initial: float
    final: float
    prop: float
    duration: int
    silent: int


class _Pause(NamedTuple):
    ms: int


class _Chirps(NamedTuple):
    """A fixed note repeated once per step of a geometric count."""

    start: int
    stop: int
    prop: float
    frequency: float
    duration: int
    silent: int


_E5 = note_frequency("E5")
_E6 = note_frequency("E6")
_A6 = note_frequency("A6")
_G6 = note_frequency("G6")
_D7 = note_frequency("D7")
_B5 = note_frequency("B5")
_C6 = note_frequency("C6")

_SONGS = {
    Song.CONNECTION: (_Tone(_E5, 50, 30), _Tone(_E6, 55, 25), _Tone(_A6, 60, 10)),
    Song.DISCONNECTION: (_Tone(_E5, 50, 30), _Tone(_A6, 55, 25), _Tone(_E6, 50, 10)),
    Song.BUTTON_PUSHED: (
        _Bend(_E6, _G6, 1.03, 20, 2),
        _Pause(30),
        _Bend(_E6, _D7, 1.04, 10, 2),
    ),
    Song.MODE1: (_Bend(_E6, _A6, 1.02, 30, 10),),
    Song.MODE2: (_Bend(_G6, _D7, 1.03, 30, 10),),
    Song.MODE3: (_Tone(_E6, 50, 100), _Tone(_G6, 50, 80), _Tone(_D7, 300, 0)),
    Song.SURPRISE: (_Bend(800, 2150, 1.02, 10, 1), _Bend(2149, 800, 1.03, 7, 1)),
    Song.OH_OOH: (
        _Bend(880, 2000, 1.04, 8, 3),
        _Pause(200),
        _Chirps(880, 2000, 1.04, _B5, 5, 10),
    ),
    Song.OH_OOH2: (
        _Bend(1880, 3000, 1.03, 8, 3),
        _Pause(200),
        _Chirps(1880, 3000, 1.03, _C6, 10, 10),
    ),
    Song.CUDDLY: (_Bend(700, 900, 1.03, 16, 4), _Bend(899, 650, 1.01, 18, 7)),
    Song.SLEEPING: (
        _Bend(100, 500, 1.04, 10, 10),
        _Pause(500),
        _Bend(400, 100, 1.04, 10, 1),
    ),
    Song.HAPPY: (_Bend(1500, 2500, 1.05, 20, 8), _Bend(2499, 1500, 1.05, 25, 8)),
    Song.SUPER_HAPPY: (
        _Bend(2000, 6000, 1.05, 8, 3),
        _Pause(50),
        _Bend(5999, 2000, 1.05, 13, 2),
    ),
    Song.HAPPY_SHORT: (
        _Bend(1500, 2000, 1.05, 15, 8),
        _Pause(100),
        _Bend(1900, 2500, 1.05, 10, 8),
    ),
    Song.SAD: (_Bend(880, 669, 1.02, 20, 200),),
    Song.CONFUSED: (
        _Bend(1000, 1700, 1.03, 8, 2),
        _Bend(1699, 500, 1.04, 8, 3),
        _Bend(1000, 1700, 1.05, 9, 10),
    ),
}


def _geometric(start: float, stop: float, prop: float) -> Iterator[int]:
    """Whole-number steps from ``start`` towards ``stop``, scaling by ``prop`` each time.

    Each step is truncated to an integer; a step that makes no progress raises.
    """
    value = int(start)
    if start < stop:
        while value < stop:
            yield value
            following = int(value * prop)
            if following <= value:
                raise ValueError(f"sweep stalls at {value} Hz with factor {prop}")
            value = following
    else:
        while value > stop:
            yield value
            following = int(value / prop)
            if following >= value:
                raise ValueError(f"sweep stalls at {value} Hz with factor {prop}")
            value = following


class SoundPlayer:
    """Plays tones on ``buzzer``; ``sleep`` waits for the given number of seconds."""

    def __init__(self, buzzer: Buzzer, sleep: Optional[Callable[[float], object]] = None):
        self.buzzer = buzzer
        self.sleep = sleep or time.sleep

    def _delay(self, ms: float) -> None:
        self.sleep(ms / 1000.0)

    def tone(self, frequency: float, duration: int, silent_duration: int = 1) -> None:
        """Sound ``frequency`` for ``duration`` ms, then stay quiet for ``silent_duration`` ms."""
        if silent_duration == 0:
            silent_duration = 1
        self.buzzer.tone(frequency, duration)
        self._delay(duration)
        self._delay(silent_duration)

    def bend_tones(
        self,
        initial: float,
        final: float,
        prop: float,
        duration: int,
        silent_duration: int = 1,
    ) -> None:
        """Sweep from ``initial`` towards ``final`` Hz, scaling by ``prop`` per tone."""
        if silent_duration == 0:
            silent_duration = 1
        for frequency in _geometric(initial, final, prop):
            self.tone(frequency, duration, silent_duration)

    def _run(self, step) -> None:
        if isinstance(step, _Tone):
            self.tone(step.frequency, step.duration, step.silent)
        elif isinstance(step, _Bend):
            self.bend_tones(step.initial, step.final, step.prop, step.duration, step.silent)
        elif isinstance(step, _Pause):
            self._delay(step.ms)
        elif isinstance(step, _Chirps):
            for _ in _geometric(step.start, step.stop, step.prop):
                self.tone(step.frequency, step.duration, step.silent)

    def sing(self, song: Union[Song, int]) -> None:
        """Play ``song``; songs without a tune are silent."""
        try:
            song = Song(song)
        except ValueError:
            return
        for step in _SONGS.get(song, ()):
            self._run(step)