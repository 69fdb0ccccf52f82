"""Energy-based voice activity detection over 256-sample audio frames."""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional, Sequence

from marvinbot.fft import (
    FFTDirection,
    FFTWindow,
    apply_window,
    complex_to_magnitude,
    compute_fft,
)

__all__ = [
    "VAD_VOICE",
    "VAD_SILENCE",
    "VAD_SAMPLE_RATE",
    "FFT_SIZE",
    "SPEECH_THRESHOLD",
    "NOISE_THRESHOLD",
    "SPEECH_FREQ_MIN",
    "SPEECH_FREQ_MAX",
    "GAIN_FACTOR",
    "VoiceActivityDetector",
    "apply_gain",
    "calculate_energy",
    "is_speech_detected",
    "smooth_value",
]

log = logging.getLogger(__name__)

VAD_VOICE = True
VAD_SILENCE = False
VAD_SAMPLE_RATE = 16000
FFT_SIZE = 256
SPEECH_THRESHOLD = 3000
NOISE_THRESHOLD = 1000
SPEECH_FREQ_MIN = 300
SPEECH_FREQ_MAX = 3400
GAIN_FACTOR = 1.5

_INT16_MIN = -32768
_INT16_MAX = 32767


def apply_gain(samples: Sequence[int], factor: float = GAIN_FACTOR) -> list[int]:
    """Scale 16-bit samples, truncating toward zero and clipping to int16."""
    return [max(_INT16_MIN, min(_INT16_MAX, int(s * factor))) for s in samples]


def calculate_energy(data: Sequence[float]) -> float:
    """Sum of squared values."""
    return sum(v * v for v in data)


def is_speech_detected(
    magnitudes: Sequence[float],
    sample_rate: int = VAD_SAMPLE_RATE,
    fft_size: int = FFT_SIZE,
) -> bool:
    """True when the RMS magnitude of the speech band exceeds the threshold."""
    start = max((SPEECH_FREQ_MIN * fft_size) // sample_rate, 0)
    end = min((SPEECH_FREQ_MAX * fft_size) // sample_rate, fft_size // 2)
    if end <= start:
        raise ValueError("speech band is empty for this FFT size")
    energy = sum(m * m for m in magnitudes[start:end])
    return math.sqrt(energy / (end - start)) > SPEECH_THRESHOLD


def smooth_value(new_value: float, old_value: float, alpha: float) -> float:
    """Exponential smoothing: ``alpha`` weighs the old value."""
    return alpha * old_value + (1 - alpha) * new_value


def _monotonic_millis() -> int:
    return int(time.monotonic() * 1000)


class VoiceActivityDetector:
    """Tracks speech on an audio source and stops after a silent spell.

    ``read_samples`` returns the next frame of ``FFT_SIZE`` signed 16-bit
    samples; ``millis`` returns a millisecond clock.
    """

    def __init__(
        self,
        read_samples: Callable[[], Sequence[int]],
        millis: Optional[Callable[[], int]] = None,
    ):
        self.read_samples = read_samples
        self.millis = millis or _monotonic_millis
        self.max_time = 10000
        self.bonus_time = 3000
        self.start_time = 0
        self.recording = False
        self.bonus_started = False
        self.listening = False
        self.previous_energy = 0.0

    @property
    def state(self) -> bool:
        """``VAD_VOICE`` while recording, ``VAD_SILENCE`` once stopped."""
        return self.recording

    def detect(self) -> bool:
        """Read one frame and report whether it holds speech."""
        raw = list(self.read_samples())
        if len(raw) != FFT_SIZE:
            raise ValueError(f"expected {FFT_SIZE} samples, got {len(raw)}")
        # Only the first half of the frame is amplified, as on the device.
        half = FFT_SIZE // 2
        samples = apply_gain(raw[:half]) + raw[half:]

        real = [float(s) for s in samples]
        imag = [0.0] * FFT_SIZE
        apply_window(real, FFTWindow.HAMMING, FFTDirection.FORWARD)
        compute_fft(real, imag, FFTDirection.FORWARD)
        complex_to_magnitude(real, imag)

        speech = is_speech_detected(real, VAD_SAMPLE_RATE, FFT_SIZE)
        energy = calculate_energy(real)
        self.previous_energy = smooth_value(energy, self.previous_energy, 0.95)
        return speech

    def start(self) -> None:
        """Begin listening and recording from now."""
        self.listening = True
        self.start_time = self.millis()
        self.recording = True
        self.bonus_started = False

    def tick(self) -> None:
        """Process one frame and stop recording after enough silence."""
        if not (self.listening and self.recording):
            return
        now = self.millis()
        if self.detect():
            self.bonus_started = False
            self.start_time = self.millis()
            return
        if self.bonus_started:
            return
        elapsed = now - self.start_time
        if elapsed >= self.max_time:
            log.info("Stop Listening - Max Time Expired")
            self.recording = False
            self.listening = False
            self.start_time = 0
        elif elapsed >= self.bonus_time:
            log.info("Stop Listening - Bonus Time Expired")
            self.recording = False
            self.bonus_started = False
            self.start_time = 0

    def run(self) -> None:
        """Tick until recording stops."""
        while self.recording:
            self.tick()