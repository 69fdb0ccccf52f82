# marvinbot

Building blocks for a small voice-driven desktop robot. Everything is plain
Python. Hardware such as servos, buzzers, microphones, touch pads and displays
is passed in as callables and objects you supply, so every part runs and can be
tested without a board attached.

## Install

```
pip install marvinbot
pip install "marvinbot[test]"   # with pytest and responses
```

## Modules

- `marvinbot.fft`: an in-place radix-2 complex FFT. `compute_fft`,
  `complex_to_magnitude`, `dc_removal`, `apply_window` (Hamming, Hann, triangle,
  Nuttall, Blackman, Blackman-Nuttall, Blackman-Harris, flat top, Welch, see
  `FFTWindow`), `major_peak` and `major_peak_parabola`, which both return
  `(frequency, magnitude)`. The `FFT` class binds a pair of arrays and can cache
  window weights. The DC bin is set to zero after every transform.
- `marvinbot.vad`: `VoiceActivityDetector` reads 256-sample frames from a
  `read_samples` callable and reports speech when the RMS magnitude in the
  300–3400 Hz band exceeds a threshold. After `start()`, each `tick()` checks
  one frame. Recording stops once no speech has been heard for 3 seconds, and
  `state` then becomes `VAD_SILENCE`. Helper functions: `apply_gain`,
  `calculate_energy`, `is_speech_detected`, `smooth_value`.
- `marvinbot.commands`: `CommandEngine` turns phrases into device commands and
  movement commands. The results collect in `cloud_cmd` and `local_cmd` until
  you call `reset_cloud()` or `reset_local()`.
- `marvinbot.touch`: `TouchSensor` offers `is_touched()` and
  `is_touch_held()`. The second returns true once a touch has lasted
  `hold_time` milliseconds (2000 by default).
- `marvinbot.gemini`: `GeminiClient.ask_question(question, max_tokens)` asks for
  a brief answer. It returns the text with everything except ASCII letters,
  digits and whitespace replaced by spaces. Failures raise `GeminiError`.
  `build_payload` and `filter_answer` are available on their own.
- `marvinbot.speech`: `SpeechClient.record_audio()` writes a mono 16 kHz 16-bit
  WAV file, with gain applied, until the detector reports silence.
  `get_transcription()` posts that file as `audio/wav` and returns the
  `"transcription"` field of the JSON reply. Failures raise
  `TranscriptionError`. Also provided are `wav_header` and `vary_gain`.
- `marvinbot.oscillator`: `Oscillator` drives a servo around 90° through a sine
  wave (`amplitude`, `offset`, `phase0`, `set_period`). It supports a trim and
  an optional speed limiter given in degrees per second.
- `marvinbot.sounds`: `SoundPlayer` provides `tone`, `bend_tones` for
  frequency sweeps, and `sing(Song...)`. `note_frequency("A4")` converts note
  names to Hz.
- `marvinbot.robot`: `Marvin` drives four servos, in the order left hip, right
  hip, left foot, right foot. It has gaits and dances (`walk`, `turn`, `bend`,
  `shake_leg`, `updown`, `swing`, `tiptoe_swing`, `jitter`, `ascending_turn`,
  `moonwalker`, `crusaito`, `flapping`, `jump`), `home()`, trim calibration
  files (`load_calibration`, `save_trims`) and `play_gesture(Gesture...)`.
- `marvinbot.animator`: `Animator` plays frames laid out as
  `<base_dir>/<name>/<category>/frame<N>.jpg` on a display object. It also
  offers a `brightness` property in percent, `cls()` and `loop()`.

## Example

```python
from marvinbot.commands import CommandEngine

engine = CommandEngine()
engine.process_command(engine.add_commas_to_command("turn on fan close window"))
print(engine.cloud_cmd)   # fan1on~window1close~

engine.process_local_command(engine.add_commas_to_local_command("move forward"))
print(engine.local_cmd)   # forwardmove~
```

```python
from marvinbot.gemini import GeminiClient

client = GeminiClient(token="token")
print(client.ask_question("What is a servo?", 300))
```

## What it does not do

- The package installs no command and has no main program that ties the parts
  together. Import the parts from your own code.
- It contains no hardware drivers. You supply the servo, buzzer, display,
  microphone sample source and touch pin reader.
- It does not include a transcription server. `SpeechClient` only sends audio
  to a server at the URL you give it.