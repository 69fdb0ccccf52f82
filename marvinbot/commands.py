"""Turn spoken phrases into compact device and motion command strings.

Cloud commands switch household devices ("turn on fan" -> ``fan1on~``);
local commands steer the robot ("move left" -> ``leftmove~``). Results
accumulate across calls until reset.
"""

from __future__ import annotations

__all__ = ["CommandEngine"]

# (spoken device name, device id)
_DEVICES = (
    ("fan", "fan1"),
    ("room light", "led1"),
    ("kitchen light", "led2"),
    ("window", "window1"),
)

# (keyword, state); "turn" takes its state from "on"/"off" in the phrase.
_KEYWORDS = (
    ("turn", ""),
    ("close", "close"),
    ("open", "open"),
)

# (spoken direction, canonical direction)
_DIRECTIONS = (
    ("left", "left"),
    ("right", "right"),
    ("forward", "forward"),
    ("ahead", "forward"),
    ("here", "forward"),
    ("backward", "backward"),
    ("back", "backward"),
    ("retreat", "backward"),
    ("fallback", "backward"),
)

# (motion verb, state)
_MOTIONS = (
    ("turn", "turn"),
    ("move", "move"),
    ("go", "go"),
    ("come", "come"),
)


def _insert_commas(command: str, names) -> str:
    """Put a comma before every occurrence of a name not already preceded by one."""
    result = command
    for name in names:
        pos = result.find(name)
        while pos != -1:
            if pos > 0 and result[pos - 1] != ",":
                result = result[:pos] + "," + result[pos:]
                pos += 1
            pos = result.find(name, pos + len(name) + 1)
    return result


def _find_verb(phrase: str, table):
    """Return ``(verb, state, rest)`` for the first verb of ``table`` in ``phrase``."""
    for verb, state in table:
        pos = phrase.find(verb)
        if pos != -1:
            return verb, state, phrase[pos + len(verb):].strip()
    return None


class CommandEngine:
    """Parses comma-separated phrases and accumulates command strings."""

    def __init__(self):
        self.cloud_cmd = ""
        self.local_cmd = ""

    def add_commas_to_command(self, command: str) -> str:
        """Separate device phrases with commas before each keyword."""
        return _insert_commas(command, (name for name, _ in _KEYWORDS))

    def _execute(self, phrase: str) -> None:
        phrase = phrase.strip()
        found = _find_verb(phrase, _KEYWORDS)
        if found is None:
            return
        verb, state, rest = found
        if verb == "turn":
            if "on" in phrase:
                state = "on"
            elif "off" in phrase:
                state = "off"
        if not state:
            return
        for name, device_id in _DEVICES:
            if name in rest:
                self.cloud_cmd += device_id + state + "~"

    def process_command(self, command: str) -> str:
        """Handle every comma-separated phrase; return the accumulated cloud command."""
        for phrase in command.split(","):
            self._execute(phrase)
        return self.cloud_cmd

    def reset_cloud(self) -> None:
        """Forget the accumulated cloud command."""
        self.cloud_cmd = ""

    def add_commas_to_local_command(self, command: str) -> str:
        """Separate motion phrases with commas before each motion verb."""
        return _insert_commas(command, (name for name, _ in _MOTIONS))

    def _execute_local(self, phrase: str) -> None:
        found = _find_verb(phrase.strip(), _MOTIONS)
        if found is None:
            return
        _, state, rest = found
        if not state:
            return
        for name, direction in _DIRECTIONS:
            if name in rest:
                self.local_cmd += direction + state + "~"

    def process_local_command(self, command: str) -> str:
        """Handle every comma-separated phrase; return the accumulated local command."""
        for phrase in command.split(","):
            self._execute_local(phrase)
        return self.local_cmd

    def reset_local(self) -> None:
        """Forget the accumulated local command."""
        self.local_cmd = ""