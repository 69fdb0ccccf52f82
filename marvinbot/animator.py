"""Frame-by-frame JPEG animations read from a directory tree onto a display."""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Optional, Protocol, Union

from PIL import Image, UnidentifiedImageError

__all__ = [
    "RUNNING",
    "IDLE",
    "USE_INTERNAL_RANDOMNESS",
    "DONT_USE_INTERNAL_RANDOMNESS",
    "BLACK",
    "Display",
    "Animator",
]

log = logging.getLogger(__name__)

RUNNING = 1
IDLE = 0
USE_INTERNAL_RANDOMNESS = True
DONT_USE_INTERNAL_RANDOMNESS = False
BLACK = 0x0000


class Display(Protocol):
    """A colour screen with a dimmable backlight."""

    width: int
    height: int

    def fill_screen(self, color: int) -> None: ...

    def println(self, text: str) -> None: ...

    def push_image(self, x: int, y: int, image: Image.Image) -> None: ...

    def set_backlight(self, value: int) -> None: ...


def _scale(value: int, in_max: int, out_max: int) -> int:
    return value * out_max // in_max


class Animator:
    """Plays animations laid out as ``<base_dir>/<name>/<category>/frame<N>.jpg``.

    Categories are numbered directories starting at 1; one is chosen at random
    for every run. In random mode only a random slice of its frames is shown.
    """

    def __init__(
        self,
        display: Display,
        base_dir: Union[str, Path] = "/",
        rng: Optional[random.Random] = None,
    ):
        self.display = display
        self.base_dir = Path(base_dir)
        self.rng = rng or random.Random()
        self.is_enabled = False
        self.name = ""
        self.random_mode = DONT_USE_INTERNAL_RANDOMNESS
        self.state = IDLE
        self._backlight = 255

    @property
    def brightness(self) -> int:
        """Backlight level in percent."""
        return _scale(self._backlight, 255, 100)

    @brightness.setter
    def brightness(self, percent: int) -> None:
        percent = max(0, min(100, percent))
        self._backlight = _scale(percent, 100, 255)
        self.display.set_backlight(self._backlight)

    def enable(self) -> None:
        """Let ``loop`` play animations."""
        self.is_enabled = True

    def disable(self) -> None:
        """Make ``loop`` rest."""
        self.is_enabled = False

    def set_mode(self, mode: bool) -> None:
        """Choose whether to play a random slice of frames."""
        self.random_mode = mode

    def play(self, name: str) -> None:
        """Select the animation to play."""
        self.name = name

    def cls(self) -> None:
        """Clear the screen."""
        self.display.fill_screen(BLACK)

    def count_frames(self, directory: Union[str, Path]) -> int:
        """Number of entries in ``directory``; 0 with a notice if it is not a directory."""
        directory = Path(directory)
        if not directory.is_dir():
            self.display.println("doesn't exist or not a directory")
            return 0
        return sum(1 for _ in directory.iterdir())

    def count_dirs(self, directory: Union[str, Path]) -> int:
        """Number of subdirectories of ``directory``; 0 if it is not a directory."""
        directory = Path(directory)
        if not directory.is_dir():
            return 0
        return sum(1 for entry in directory.iterdir() if entry.is_dir())

    def _random(self, low: int, high: int) -> int:
        # Upper bound excluded; an empty range yields its lower bound.
        if high <= low:
            return low
        return self.rng.randrange(low, high)

    def animate(self) -> None:
        """Play one run of the selected animation."""
        self.state = RUNNING
        base_path = self.base_dir / self.name
        categories = self.count_dirs(base_path)
        selected = self._random(1, categories + 1)
        frame_path = base_path / str(selected)
        frame_count = self.count_frames(frame_path)
        log.info(
            "Found %s animation categories: %d, selected: %d, frames: %d",
            self.name,
            categories,
            selected,
            frame_count,
        )
        start, end = 0, frame_count
        if self.random_mode:
            start = self._random(0, frame_count - 1)
            end = self._random(start, frame_count)
        for index in range(start, end):
            path = frame_path / f"frame{index}.jpg"
            log.debug("Printing %s", path)
            self.draw_jpeg(path, 0, 0)
        self.state = IDLE

    def draw_jpeg(self, path: Union[str, Path], x: int = 0, y: int = 0) -> bool:
        """Draw the image at ``path`` with its top-left corner at ``(x, y)``.

        The part beyond the screen edges is cut off. Returns False when the
        file is missing or cannot be decoded.
        """
        try:
            with Image.open(path) as source:
                image = source.convert("RGB")
        except FileNotFoundError:
            log.error('ERROR: File "%s" not found!', path)
            return False
        except (UnidentifiedImageError, OSError):
            log.error("Jpeg file format not supported!")
            return False
        visible_w = min(image.width, self.display.width - x)
        visible_h = min(image.height, self.display.height - y)
        if visible_w <= 0 or visible_h <= 0:
            return True
        if (visible_w, visible_h) != image.size:
            image = image.crop((0, 0, visible_w, visible_h))
        self.display.push_image(x, y, image)
        return True

    def loop(self) -> None:
        """Play the selected animation if enabled, otherwise rest."""
        if self.is_enabled:
            self.animate()
        else:
            log.info("Animator is resting....")