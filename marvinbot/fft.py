"""Radix-2 FFT, spectral windows and peak detection for real-valued signals.

All array operations work in place on mutable sequences of floats.
"""

from __future__ import annotations

import enum
import math
from collections.abc import MutableSequence
from typing import Optional

__all__ = [
    "FFTDirection",
    "FFTWindow",
    "FFT",
    "compute_fft",
    "complex_to_magnitude",
    "dc_removal",
    "major_peak",
    "major_peak_parabola",
    "apply_window",
]

_TWO_PI = 2.0 * math.pi
_FOUR_PI = 4.0 * math.pi
_SIX_PI = 6.0 * math.pi


class FFTDirection(enum.Enum):
    """Direction of a transform or of a windowing pass."""

    FORWARD = "forward"
    REVERSE = "reverse"


class FFTWindow(enum.IntEnum):
    """Window functions; the value indexes the compensation table."""

    RECTANGLE = 0
    HAMMING = 1
    HANN = 2
    TRIANGLE = 3
    NUTTALL = 4
    BLACKMAN = 5
    BLACKMAN_NUTTALL = 6
    BLACKMAN_HARRIS = 7
    FLAT_TOP = 8
    WELCH = 9
    PRECOMPILED = 10


_COMPENSATION_FACTORS = (
    1.0000000000 * 2.0,
    1.8549343278 * 2.0,
    1.8554726898 * 2.0,
    2.0039186079 * 2.0,
    2.8163172034 * 2.0,
    2.3673474360 * 2.0,
    2.7557840395 * 2.0,
    2.7929062517 * 2.0,
    3.5659039231 * 2.0,
    1.5029392863 * 2.0,
    1.0,
)


def _exponent(value: int) -> int:
    """Integer base-2 logarithm (floor)."""
    return max(value.bit_length() - 1, 0)


def _check_pair(real: MutableSequence[float], imag: MutableSequence[float]) -> int:
    if len(real) != len(imag):
        raise ValueError("real and imaginary parts must have the same length")
    if not real:
        raise ValueError("cannot transform an empty signal")
    return len(real)


def _compute(real, imag, samples: int, direction: FFTDirection) -> None:
    if samples <= 0:
        raise ValueError("cannot transform an empty signal")
    reverse = direction is FFTDirection.REVERSE
    power = _exponent(samples)

    # Bit-reversal permutation.
    j = 0
    for i in range(samples - 1):
        if i < j:
            real[i], real[j] = real[j], real[i]
            if reverse:
                imag[i], imag[j] = imag[j], imag[i]
        k = samples >> 1
        while k <= j:
            j -= k
            k >>= 1
        j += k

    c1, c2 = -1.0, 0.0
    l2 = 1
    for _ in range(power):
        l1 = l2
        l2 <<= 1
        u1, u2 = 1.0, 0.0
        for j in range(l1):
            for i in range(j, samples, l2):
                i1 = i + l1
                t1 = u1 * real[i1] - u2 * imag[i1]
                t2 = u1 * imag[i1] + u2 * real[i1]
                real[i1] = real[i] - t1
                imag[i1] = imag[i] - t2
                real[i] += t1
                imag[i] += t2
            u1, u2 = u1 * c1 - u2 * c2, u1 * c2 + u2 * c1
        c_half = 0.5 * c1
        c2 = math.sqrt(0.5 - c_half)
        c1 = math.sqrt(0.5 + c_half)
        if not reverse:
            c2 = -c2

    if reverse:
        for i in range(samples):
            real[i] /= samples
            imag[i] /= samples
    # The DC bin is suppressed to avoid a spike from any signal offset.
    real[0] = 0.0


def compute_fft(real, imag, direction=FFTDirection.FORWARD) -> None:
    """Run an in-place complex FFT; the forward pass expects a zero imaginary part."""
    _compute(real, imag, _check_pair(real, imag), FFTDirection(direction))


def _magnitude(real, imag, samples: int) -> None:
    for i in range(samples):
        real[i] = math.hypot(real[i], imag[i])


def complex_to_magnitude(real, imag) -> None:
    """Replace ``real`` with the magnitude of each complex bin."""
    _magnitude(real, imag, _check_pair(real, imag))


def _dc_removal(data, samples: int) -> None:
    if samples <= 0:
        raise ValueError("cannot remove the mean of an empty signal")
    mean = sum(data[:samples]) / samples
    for i in range(samples):
        data[i] -= mean


def dc_removal(data) -> None:
    """Subtract the mean from every sample."""
    _dc_removal(data, len(data))


def _find_max(data, length: int) -> int:
    index = 0
    for i in range(1, min(length, len(data) - 1)):
        if data[i - 1] < data[i] > data[i + 1] and data[i] > data[index]:
            index = i
    return index


def _major_peak(data, samples: int, sampling_frequency: float) -> tuple[float, float]:
    index = _find_max(data, (samples >> 1) + 1)
    if index == 0:
        raise ValueError("no spectral peak found")
    before, peak, after = data[index - 1], data[index], data[index + 1]
    curvature = before - 2.0 * peak + after
    delta = 0.5 * ((before - after) / curvature)
    if index == samples >> 1:
        frequency = ((index + delta) * sampling_frequency) / samples
    else:
        frequency = ((index + delta) * sampling_frequency) / (samples - 1)
    return frequency, abs(curvature)


def major_peak(data, sampling_frequency) -> tuple[float, float]:
    """Return ``(frequency, magnitude)`` of the strongest interpolated peak."""
    return _major_peak(data, len(data), sampling_frequency)


def _parabola(x1, y1, x2, y2, x3, y3) -> tuple[float, float, float]:
    # x1, x2, x3 are consecutive integers, so the inverse denominator is -0.5.
    inv = -0.5
    a = (x3 * (y2 - y1) + x2 * (y1 - y3) + x1 * (y3 - y2)) * inv
    b = (x3 * x3 * (y1 - y2) + x2 * x2 * (y3 - y1) + x1 * x1 * (y2 - y3)) * inv
    c = (
        x2 * x3 * (x2 - x3) * y1
        + x3 * x1 * (x3 - x1) * y2
        + x1 * x2 * (x1 - x2) * y3
    ) * inv
    return a, b, c


def _major_peak_parabola(
    data, samples: int, sampling_frequency: float
) -> tuple[float, float]:
    index = _find_max(data, (samples >> 1) + 1)
    if index == 0:
        return 0.0, 0.0
    a, b, c = _parabola(
        index - 1, data[index - 1], index, data[index], index + 1, data[index + 1]
    )
    x = -b / (2 * a)
    magnitude = a * x * x + b * x + c
    return (x * sampling_frequency) / samples, magnitude


def major_peak_parabola(data, sampling_frequency) -> tuple[float, float]:
    """Return ``(frequency, magnitude)`` of the peak fitted by a parabola.

    Both are zero when no local maximum beats the first bin.
    """
    return _major_peak_parabola(data, len(data), sampling_frequency)


def _weight(window_type: FFTWindow, i: int, span: float) -> float:
    ratio = i / span
    if window_type is FFTWindow.HAMMING:
        return 0.54 - 0.46 * math.cos(_TWO_PI * ratio)
    if window_type is FFTWindow.HANN:
        return 0.54 * (1.0 - math.cos(_TWO_PI * ratio))
    if window_type is FFTWindow.TRIANGLE:
        return 1.0 - (2.0 * abs(i - span / 2.0)) / span
    if window_type is FFTWindow.NUTTALL:
        return (
            0.355768
            - 0.487396 * math.cos(_TWO_PI * ratio)
            + 0.144232 * math.cos(_FOUR_PI * ratio)
            - 0.012604 * math.cos(_SIX_PI * ratio)
        )
    if window_type is FFTWindow.BLACKMAN:
        return (
            0.42323
            - 0.49755 * math.cos(_TWO_PI * ratio)
            + 0.07922 * math.cos(_FOUR_PI * ratio)
        )
    if window_type is FFTWindow.BLACKMAN_NUTTALL:
        return (
            0.3635819
            - 0.4891775 * math.cos(_TWO_PI * ratio)
            + 0.1365995 * math.cos(_FOUR_PI * ratio)
            - 0.0106411 * math.cos(_SIX_PI * ratio)
        )
    if window_type is FFTWindow.BLACKMAN_HARRIS:
        return (
            0.35875
            - 0.48829 * math.cos(_TWO_PI * ratio)
            + 0.14128 * math.cos(_FOUR_PI * ratio)
            - 0.01168 * math.cos(_SIX_PI * ratio)
        )
    if window_type is FFTWindow.FLAT_TOP:
        return (
            0.2810639
            - 0.5208972 * math.cos(_TWO_PI * ratio)
            + 0.1980399 * math.cos(_FOUR_PI * ratio)
        )
    if window_type is FFTWindow.WELCH:
        return 1.0 - ((i - span / 2.0) / (span / 2.0)) ** 2
    return 1.0


def _scale_pair(data, samples: int, i: int, weight: float, forward: bool) -> None:
    mirror = samples - (i + 1)
    if forward:
        data[i] *= weight
        data[mirror] *= weight
    else:
        data[i] /= weight
        data[mirror] /= weight


def _apply_window(
    data,
    samples: int,
    window_type: FFTWindow,
    direction: FFTDirection,
    factors: Optional[MutableSequence[float]],
    with_compensation: bool,
) -> None:
    forward = direction is FFTDirection.FORWARD
    half = samples >> 1
    if factors is not None and window_type is FFTWindow.PRECOMPILED:
        for i in range(half):
            _scale_pair(data, samples, i, factors[i], forward)
        return

    span = float(samples) - 1.0
    compensation = _COMPENSATION_FACTORS[window_type] if with_compensation else 1.0
    for i in range(half):
        weight = _weight(window_type, i, span) * compensation
        if factors is not None:
            factors[i] = weight
        _scale_pair(data, samples, i, weight, forward)


def apply_window(
    data,
    window_type=FFTWindow.HAMMING,
    direction=FFTDirection.FORWARD,
    factors=None,
    with_compensation=False,
) -> None:
    """Weigh ``data`` in place with a symmetric window.

    With ``FFTWindow.PRECOMPILED`` and ``factors`` given, the stored half-window
    is used; otherwise the weights are computed and, if ``factors`` is given,
    recorded into it. The reverse direction divides the weights back out.
    """
    _apply_window(
        data,
        len(data),
        FFTWindow(window_type),
        FFTDirection(direction),
        factors,
        with_compensation,
    )


class FFT:
    """FFT bound to a pair of arrays, with optional cached window weights."""

    def __init__(
        self,
        real,
        imag,
        samples=None,
        sampling_frequency=1.0,
        windowing_factors=False,
    ):
        self.real = real
        self.imag = imag
        self.samples = len(real) if samples is None else samples
        self.sampling_frequency = sampling_frequency
        self._factors: Optional[list[float]] = (
            [0.0] * (self.samples // 2) if windowing_factors else None
        )
        self._is_precompiled = False
        self._with_compensation = False
        self._window: Optional[FFTWindow] = None

    @property
    def power(self) -> int:
        """Base-2 logarithm of the sample count."""
        return _exponent(self.samples)

    @property
    def windowing_factors(self) -> Optional[list[float]]:
        """Cached half-window weights, if caching is enabled."""
        return self._factors

    def compute(self, direction=FFTDirection.FORWARD) -> None:
        """Transform the bound arrays in place."""
        _compute(self.real, self.imag, self.samples, FFTDirection(direction))

    def complex_to_magnitude(self) -> None:
        """Replace the real array with bin magnitudes."""
        _magnitude(self.real, self.imag, self.samples)

    def dc_removal(self) -> None:
        """Subtract the mean from the real array."""
        _dc_removal(self.real, self.samples)

    def major_peak(self) -> tuple[float, float]:
        """Interpolated ``(frequency, magnitude)`` of the strongest peak."""
        return _major_peak(self.real, self.samples, self.sampling_frequency)

    def major_peak_parabola(self) -> tuple[float, float]:
        """Parabola-fitted ``(frequency, magnitude)`` of the strongest peak."""
        return _major_peak_parabola(self.real, self.samples, self.sampling_frequency)

    def windowing(
        self,
        window_type=FFTWindow.HAMMING,
        direction=FFTDirection.FORWARD,
        with_compensation=False,
    ) -> None:
        """Window the real array, reusing cached weights when they match."""
        window_type = FFTWindow(window_type)
        direction = FFTDirection(direction)
        if (
            self._factors is not None
            and self._is_precompiled
            and self._window is window_type
            and self._with_compensation == with_compensation
        ):
            _apply_window(
                self.real,
                self.samples,
                FFTWindow.PRECOMPILED,
                direction,
                self._factors,
                with_compensation,
            )
        elif self._factors is not None:
            _apply_window(
                self.real,
                self.samples,
                window_type,
                direction,
                self._factors,
                with_compensation,
            )
            self._is_precompiled = True
            self._with_compensation = with_compensation
            self._window = window_type
        else:
            _apply_window(
                self.real, self.samples, window_type, direction, None, with_compensation
            )

    def set_arrays(self, real, imag, samples=0) -> None:
        """Bind new arrays; a nonzero ``samples`` also resets the weight cache."""
        self.real = real
        self.imag = imag
        if samples:
            self.samples = samples
            self._factors = [0.0] * (samples // 2)
            self._is_precompiled = False