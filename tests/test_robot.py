import math

import pytest

from marvinbot.oscillator import Oscillator
from marvinbot.robot import (
    LEFT,
    RIGHT,
    SERVO_LIMIT_DEFAULT,
    Gesture,
    Marvin,
)
from marvinbot.sounds import SoundPlayer


class FakeClock:
    def __init__(self):
        self.now = 1000

    def millis(self):
        return self.now

    def sleep(self, seconds):
        self.now += max(1, round(seconds * 1000))


class FakeServo:
    def __init__(self):
        self.is_attached = False
        self.pin = None
        self.writes = []

    def attached(self):
        return self.is_attached

    def attach(self, pin):
        self.is_attached = True
        self.pin = pin
        return 0

    def detach(self):
        self.is_attached = False

    def write(self, angle):
        self.writes.append(angle)


class FakeBuzzer:
    def __init__(self):
        self.tones = []

    def tone(self, frequency, duration):
        self.tones.append((frequency, duration))


@pytest.fixture
def rig():
    clock = FakeClock()
    servos = [FakeServo() for _ in range(4)]
    oscillators = [Oscillator(s, millis=clock.millis) for s in servos]
    buzzer = FakeBuzzer()
    player = SoundPlayer(buzzer, sleep=clock.sleep)
    robot = Marvin(
        oscillators, [12, 13, 14, 15], player, millis=clock.millis, sleep=clock.sleep
    )
    return robot, servos, clock, buzzer


def positions(robot):
    return [osc.position for osc in robot.oscillators]


def test_construction_attaches_servos_at_home(rig):
    robot, servos, _, _ = rig
    assert [s.pin for s in servos] == [12, 13, 14, 15]
    assert all(s.is_attached for s in servos)
    assert all(s.writes == [90] for s in servos)
    assert robot.is_resting is False


def test_wrong_servo_count_rejected():
    clock = FakeClock()
    oscillators = [Oscillator(FakeServo(), millis=clock.millis) for _ in range(3)]
    with pytest.raises(ValueError):
        Marvin(oscillators, [1, 2, 3], SoundPlayer(FakeBuzzer(), sleep=clock.sleep))


def test_move_servos_reaches_targets_in_time(rig):
    robot, _, clock, _ = rig
    start = clock.now
    robot.move_servos(500, [120, 60, 150, 30])
    assert positions(robot) == [120, 60, 150, 30]
    assert clock.now - start >= 500


def test_move_servos_needs_four_targets(rig):
    robot, _, _, _ = rig
    with pytest.raises(ValueError):
        robot.move_servos(100, [90, 90])


def test_move_servos_with_limiter_still_arrives(rig):
    robot, _, _, _ = rig
    robot.enable_servo_limit(60)
    robot.move_servos(20, [150, 30, 150, 30])
    assert positions(robot) == [150, 30, 150, 30]


def test_home_detaches_and_is_idempotent(rig):
    robot, servos, _, _ = rig
    robot.move_servos(100, [100, 80, 100, 80])
    robot.home()
    assert positions(robot) == [90, 90, 90, 90]
    assert robot.is_resting is True
    assert not any(s.is_attached for s in servos)
    counts = [len(s.writes) for s in servos]
    robot.home()
    assert [len(s.writes) for s in servos] == counts


def test_move_single_sets_one_servo_and_clamps(rig):
    robot, _, _, _ = rig
    robot.move_single(45, 2)
    assert positions(robot) == [90, 90, 45, 90]
    robot.move_single(200, 2)
    assert robot.oscillators[2].position == 90
    robot.move_single(-5, 0)
    assert robot.oscillators[0].position == 90


def test_move_single_wakes_from_rest(rig):
    robot, servos, _, _ = rig
    robot.home()
    robot.move_single(100, 1)
    assert robot.is_resting is False
    assert all(s.is_attached for s in servos)


def test_trims_round_trip_through_files(rig, tmp_path):
    robot, _, _, _ = rig
    robot.set_trims(3, -4, 5, -6)
    robot.save_trims(tmp_path)
    robot.set_trims(0, 0, 0, 0)
    robot.load_calibration(tmp_path)
    assert [osc.trim for osc in robot.oscillators] == [3, -4, 5, -6]


def test_load_calibration_wraps_and_defaults(rig, tmp_path):
    robot, _, _, _ = rig
    (tmp_path / "0.txt").write_text("200")
    (tmp_path / "1.txt").write_text("128")
    robot.load_calibration(tmp_path)
    assert [osc.trim for osc in robot.oscillators] == [-56, 128, 0, 0]


def test_trim_applied_to_servo_commands(rig):
    robot, servos, _, _ = rig
    robot.set_trims(5, 0, 0, 0)
    robot.move_single(100, 0)
    assert servos[0].writes[-1] == 105
    assert robot.oscillators[0].position == 100


def test_servo_limit_enable_disable(rig):
    robot, _, _, _ = rig
    robot.enable_servo_limit()
    assert [o.diff_limit for o in robot.oscillators] == [SERVO_LIMIT_DEFAULT] * 4
    robot.disable_servo_limit()
    assert [o.diff_limit for o in robot.oscillators] == [0] * 4


def test_walk_oscillates_for_steps_periods(rig):
    robot, servos, clock, _ = rig
    start = clock.now
    robot.walk(2, 600)
    assert clock.now - start >= 1200
    hip_writes = servos[0].writes[1:]
    assert min(hip_writes) >= 60 and max(hip_writes) <= 120
    assert len(set(hip_writes)) > 3
    assert [o.amplitude for o in robot.oscillators] == [30, 30, 20, 20]
    assert [o.offset for o in robot.oscillators] == [0, 0, 4, -4]


def test_turn_amplitudes_depend_on_direction(rig):
    robot, _, _, _ = rig
    robot.turn(0.5, 300, LEFT)
    assert [o.amplitude for o in robot.oscillators] == [30, 10, 20, 20]
    robot.turn(0.5, 300, RIGHT)
    assert [o.amplitude for o in robot.oscillators] == [10, 30, 20, 20]


def test_jitter_and_ascending_turn_cap_height(rig):
    robot, _, _, _ = rig
    robot.jitter(0.2, 300, 40)
    assert [o.amplitude for o in robot.oscillators] == [25, 25, 0, 0]
    robot.ascending_turn(0.2, 300, 40)
    assert [o.amplitude for o in robot.oscillators] == [13, 13, 13, 13]


def test_moonwalker_and_crusaito_phases(rig):
    robot, _, _, _ = rig
    robot.moonwalker(0.2, 300, 20, LEFT)
    assert robot.oscillators[2].phase0 == pytest.approx(math.radians(-90))
    assert robot.oscillators[3].phase0 == pytest.approx(math.radians(-150))
    robot.crusaito(0.2, 300, 20, 1)
    assert robot.oscillators[0].phase0 == 90
    assert robot.oscillators[3].phase0 == pytest.approx(math.radians(-60))


def test_jump_returns_home(rig):
    robot, servos, _, _ = rig
    robot.jump(1, 200)
    assert positions(robot) == [90, 90, 90, 90]
    assert 150 in servos[2].writes
    assert 30 in servos[3].writes


def test_bend_right_uses_mirrored_pose(rig):
    robot, servos, _, _ = rig
    robot.bend(1, 500, RIGHT)
    assert 180 - 35 in servos[2].writes
    assert positions(robot) == [90, 90, 90, 90]


def test_shake_leg_ends_home(rig):
    robot, servos, _, _ = rig
    robot.shake_leg(1, 2000, LEFT)
    assert 120 in servos[3].writes
    assert positions(robot) == [90, 90, 90, 90]


def test_happy_gesture_sings_and_rests(rig):
    robot, servos, _, buzzer = rig
    robot.play_gesture(Gesture.HAPPY)
    assert len(buzzer.tones) > 3
    assert robot.is_resting is True
    assert not any(s.is_attached for s in servos)
    assert positions(robot) == [90, 90, 90, 90]


def test_fail_gesture_ends_home(rig):
    robot, servos, _, buzzer = rig
    robot.play_gesture(Gesture.FAIL)
    assert (150, 2200) in buzzer.tones
    assert 34 in servos[2].writes
    assert robot.is_resting is True


def test_gesture_without_routine_does_nothing(rig):
    robot, servos, clock, buzzer = rig
    start = clock.now
    robot.play_gesture(Gesture.FART)
    robot.play_gesture(99)
    assert buzzer.tones == []
    assert clock.now == start
    assert all(s.writes == [90] for s in servos)