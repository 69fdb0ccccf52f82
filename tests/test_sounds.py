import pytest

from marvinbot.sounds import Song, SoundPlayer, note_frequency


class FakeBuzzer:
    def __init__(self):
        self.tones = []

    def tone(self, frequency, duration):
        self.tones.append((frequency, duration))


@pytest.fixture
def setup():
    buzzer = FakeBuzzer()
    sleeps = []
    return buzzer, sleeps, SoundPlayer(buzzer, sleeps.append)


def test_note_frequency_reference_pitch():
    assert note_frequency("A4") == 440.0
    assert note_frequency("A5") == 880.0


@pytest.mark.parametrize(
    "name, expected", [("E6", 1318.51), ("G6", 1567.98), ("D7", 2349.32)]
)
def test_note_frequency_matches_table(name, expected):
    assert note_frequency(name) == expected


def test_note_frequency_octave_doubles():
    assert note_frequency("C7") == pytest.approx(2 * note_frequency("C6"), abs=0.02)


def test_sharp_equals_flat():
    assert note_frequency("C#5") == note_frequency("Db5")


@pytest.mark.parametrize("name", ["H4", "A", "", "A#x"])
def test_note_frequency_rejects_bad_names(name):
    with pytest.raises(ValueError):
        note_frequency(name)


def test_tone_plays_then_waits(setup):
    buzzer, sleeps, player = setup
    player.tone(500, 40, 20)
    assert buzzer.tones == [(500, 40)]
    assert sleeps == [0.04, 0.02]


def test_tone_zero_silence_becomes_one_ms(setup):
    _, sleeps, player = setup
    player.tone(500, 10, 0)
    assert sleeps[-1] == 0.001


def test_bend_tones_ascending(setup):
    buzzer, _, player = setup
    player.bend_tones(1000, 1500, 1.05, 10, 1)
    freqs = [f for f, _ in buzzer.tones]
    assert freqs[0] == 1000
    assert all(a < b for a, b in zip(freqs, freqs[1:]))
    assert all(f < 1500 for f in freqs)
    assert all(isinstance(f, int) for f in freqs)


def test_bend_tones_descending(setup):
    buzzer, _, player = setup
    player.bend_tones(1500, 1000, 1.05, 10, 1)
    freqs = [f for f, _ in buzzer.tones]
    assert freqs[0] == 1500
    assert all(a > b for a, b in zip(freqs, freqs[1:]))
    assert all(f > 1000 for f in freqs)


def test_bend_tones_empty_when_already_there(setup):
    buzzer, _, player = setup
    player.bend_tones(1000, 1000, 1.05, 10, 1)
    assert buzzer.tones == []


def test_bend_tones_stalled_sweep_raises(setup):
    _, _, player = setup
    with pytest.raises(ValueError):
        player.bend_tones(10, 20, 1.02, 5, 1)


def test_sing_connection(setup):
    buzzer, _, player = setup
    player.sing(Song.CONNECTION)
    assert buzzer.tones == [
        (note_frequency("E5"), 50),
        (note_frequency("E6"), 55),
        (note_frequency("A6"), 60),
    ]


def test_sing_mode3_accepts_int(setup):
    buzzer, _, player = setup
    player.sing(5)
    assert [d for _, d in buzzer.tones] == [50, 50, 300]


def test_sing_oh_ooh_ends_with_b5_chirps(setup):
    buzzer, sleeps, player = setup
    player.sing(Song.OH_OOH)
    assert buzzer.tones[-1] == (note_frequency("B5"), 5)
    assert 0.2 in sleeps


@pytest.mark.parametrize("song", [Song.FART1, Song.FART3, 999])
def test_sing_without_tune_is_silent(setup, song):
    buzzer, sleeps, player = setup
    player.sing(song)
    assert buzzer.tones == []
    assert sleeps == []


@pytest.mark.parametrize("song", [s for s in Song if s < Song.FART1])
def test_every_tuned_song_plays_something(setup, song):
    buzzer, _, player = setup
    player.sing(song)
    assert len(buzzer.tones) > 0