"""Voice, motion, sound and animation building blocks for a small desktop robot."""

__version__ = "0.1.0"

__all__ = [
    "animator",
    "commands",
    "fft",
    "gemini",
    "oscillator",
    "robot",
    "sounds",
    "speech",
    "touch",
    "vad",
]