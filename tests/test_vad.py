import math

import pytest

from marvinbot.vad import (
    FFT_SIZE,
    VoiceActivityDetector,
    apply_gain,
    calculate_energy,
    is_speech_detected,
    smooth_value,
)


class _Clock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


def _sine(amplitude, frequency=1000):
    return [
        int(amplitude * math.sin(2 * math.pi * frequency * n / 16000))
        for n in range(FFT_SIZE)
    ]


SILENCE = [0] * FFT_SIZE


def test_apply_gain_clips_to_int16():
    assert apply_gain([30000, -30000], 1.5) == [32767, -32768]


def test_apply_gain_identity():
    data = [1, -2, 300]
    assert apply_gain(data, 1) == data


def test_calculate_energy_nonnegative_and_zero_for_silence():
    assert calculate_energy([0.0, 0.0]) == 0
    assert calculate_energy([-3.0, 3.0]) == calculate_energy([3.0, 3.0])


@pytest.mark.parametrize("value", [0.0, 12.5, -4.0])
def test_smooth_value_fixed_point(value):
    assert smooth_value(value, value, 0.95) == pytest.approx(value)


def test_smooth_value_extremes():
    assert smooth_value(10.0, 2.0, 1.0) == 2.0
    assert smooth_value(10.0, 2.0, 0.0) == 10.0


def test_is_speech_detected_empty_band():
    with pytest.raises(ValueError):
        is_speech_detected([0.0, 0.0], 16000, 2)


def test_is_speech_detected_threshold():
    quiet = [0.0] * FFT_SIZE
    loud = [1e6] * FFT_SIZE
    assert is_speech_detected(quiet) is False
    assert is_speech_detected(loud) is True


def test_detect_silence_and_tone():
    frames = iter([SILENCE, _sine(10000)])
    detector = VoiceActivityDetector(lambda: next(frames), _Clock())
    assert detector.detect() is False
    assert detector.previous_energy == 0
    assert detector.detect() is True
    assert detector.previous_energy > 0


def test_detect_quiet_tone_is_not_speech():
    detector = VoiceActivityDetector(lambda: _sine(1), _Clock())
    assert detector.detect() is False


def test_detect_rejects_wrong_frame_size():
    detector = VoiceActivityDetector(lambda: [0] * 10, _Clock())
    with pytest.raises(ValueError):
        detector.detect()


def test_bonus_time_stops_recording():
    clock = _Clock()
    detector = VoiceActivityDetector(lambda: SILENCE, clock)
    detector.start()
    clock.now = detector.bonus_time - 1
    detector.tick()
    assert detector.recording is True
    clock.now = detector.bonus_time
    detector.tick()
    assert detector.recording is False
    assert detector.listening is True
    assert detector.start_time == 0


def test_max_time_stops_listening():
    clock = _Clock()
    detector = VoiceActivityDetector(lambda: SILENCE, clock)
    detector.bonus_time = detector.max_time + 1000
    detector.start()
    clock.now = detector.max_time
    detector.tick()
    assert detector.recording is False
    assert detector.listening is False


def test_speech_resets_timer():
    clock = _Clock()
    detector = VoiceActivityDetector(lambda: _sine(10000), clock)
    detector.start()
    clock.now = 5000
    detector.tick()
    assert detector.recording is True
    assert detector.start_time == 5000


def test_run_ends_after_silence():
    clock = _Clock()
    reads = []

    def read():
        clock.now += 500
        reads.append(clock.now)
        return SILENCE

    detector = VoiceActivityDetector(read, clock)
    detector.start()
    detector.run()
    assert detector.state is False
    assert reads[-1] >= detector.bonus_time