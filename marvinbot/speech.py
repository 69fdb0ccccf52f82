"""Record speech to a WAV file and send it to a transcription server."""

from __future__ import annotations

import json
import logging
import struct
import time
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

import requests

from marvinbot.vad import VAD_SILENCE

__all__ = [
    "SAMPLE_RATE",
    "SAMPLE_BITS",
    "READ_LEN",
    "HEADER_SIZE",
    "DEFAULT_GAIN",
    "TranscriptionError",
    "SpeechClient",
    "wav_header",
    "vary_gain",
]

log = logging.getLogger(__name__)

SAMPLE_RATE = 16000
SAMPLE_BITS = 16
READ_LEN = 1024
HEADER_SIZE = 44
DEFAULT_GAIN = 30

_CHANNELS = 1
_INT16_MIN = -32768
_INT16_MAX = 32767
_MAX_DATA_SIZE = 0xFFFFFFFF - 36


class TranscriptionError(Exception):
    """The recording could not be transcribed."""


class Detector(Protocol):
    """What the recorder needs from a voice activity detector."""

    @property
    def state(self) -> bool: ...

    def start(self) -> None: ...

    def tick(self) -> None: ...


def wav_header(data_size: int) -> bytes:
    """44-byte header of a mono 16-bit PCM WAV file holding ``data_size`` bytes."""
    if not 0 <= data_size <= _MAX_DATA_SIZE:
        raise ValueError(f"data size out of range: {data_size}")
    block_align = _CHANNELS * (SAMPLE_BITS // 8)
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        data_size + 36,
        b"WAVE",
        b"fmt ",
        16,
        1,
        _CHANNELS,
        SAMPLE_RATE,
        SAMPLE_RATE * block_align,
        block_align,
        SAMPLE_BITS,
        b"data",
        data_size,
    )


def vary_gain(data: bytes, gain: float) -> bytes:
    """Amplify little-endian 16-bit samples by ``gain``, clipping at full scale.

    A trailing odd byte is passed through unchanged.
    """
    count = len(data) // 2
    samples = struct.unpack_from(f"<{count}h", data)
    scaled = []
    for sample in samples:
        value = max(-1.0, min(1.0, sample / 32768.0 * gain))
        scaled.append(max(_INT16_MIN, min(_INT16_MAX, int(value * 32768))))
    return struct.pack(f"<{count}h", *scaled) + bytes(data[2 * count:])


class SpeechClient:
    """Records until the detector hears silence, then asks a server for the text.

    ``read_chunk`` returns the next block of raw little-endian 16-bit mono
    audio; ``detector`` decides when the speaker has stopped.
    """

    def __init__(
        self,
        server_url: str,
        read_chunk: Callable[[], bytes],
        detector: Detector,
        path: Union[str, Path] = "recording.wav",
        session: Optional[requests.Session] = None,
    ):
        self.server_url = server_url
        self.read_chunk = read_chunk
        self.detector = detector
        self.path = Path(path)
        self.session = session or requests.Session()
        self.gain = DEFAULT_GAIN
        self.stt = ""

    def record_audio(self) -> int:
        """Record to ``path`` as WAV; return the number of audio bytes written."""
        self.path.unlink(missing_ok=True)
        recorded = 0
        with self.path.open("wb") as fh:
            fh.write(wav_header(0))
            self.detector.start()
            log.info("Start listening")
            while True:
                chunk = vary_gain(self.read_chunk(), self.gain)
                fh.write(chunk)
                recorded += len(chunk)
                self.detector.tick()
                if self.detector.state == VAD_SILENCE:
                    log.info("Stopped listening")
                    break
            fh.seek(0)
            fh.write(wav_header(recorded))
        return recorded

    def get_transcription(self) -> str:
        """Send the recording and return its transcription."""
        started = time.monotonic()
        try:
            audio = self.path.read_bytes()
        except OSError as exc:
            raise TranscriptionError(f"recording is not available: {self.path}") from exc
        try:
            response = self.session.post(
                self.server_url,
                data=audio,
                headers={"Content-Type": "audio/wav"},
                timeout=60,
            )
        except requests.RequestException as exc:
            raise TranscriptionError(f"unable to reach server: {exc}") from exc
        log.info("httpResponseCode: %s", response.status_code)
        if response.status_code != 200:
            raise TranscriptionError(
                f"request failed with status {response.status_code}"
            )
        self.stt = response.text
        log.info("User:=>%s", self.stt)
        try:
            text = json.loads(self.stt)["transcription"]
        except (ValueError, KeyError, TypeError) as exc:
            raise TranscriptionError("malformed response") from exc
        if not isinstance(text, str):
            raise TranscriptionError("malformed response")
        log.info("Transcription took %.0f ms", (time.monotonic() - started) * 1000)
        return text