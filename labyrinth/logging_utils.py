"""Console output for labyrinth runs.

Each line carries a channel tag so local bookkeeping, remote calls, failures
and completion stay distinguishable when colors are off
(``LABYRINTH_NO_COLOR``).
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    GREEN = "\033[92m"

    BOLD = "\033[1m"
    RESET = "\033[0m"


LOG_TAG_LOCAL = "[•]"
LOG_TAG_REMOTE = "[>>]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"

# Channel -> (color, tag)
_CHANNELS = {
    "local": (Color.BLUE, LOG_TAG_LOCAL),
    "remote": (Color.YELLOW, LOG_TAG_REMOTE),
    "error": (Color.RED, LOG_TAG_ERROR),
    "success": (Color.GREEN, LOG_TAG_SUCCESS),
}


def colors_enabled() -> bool:
    return not os.getenv("LABYRINTH_NO_COLOR")


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap ``text`` in ANSI codes, or return it unchanged when colors are off."""
    if not colors_enabled():
        return text
    prefix = (Color.BOLD.value if bold else "") + color.value
    return f"{prefix}{text}{Color.RESET.value}"


def _emit(channel: str, message: str) -> None:
    color, tag = _CHANNELS[channel]
    print(colored(f"{tag} {message}", color))


def log_local(message: str) -> None:
    """Graph, queue and pool bookkeeping."""
    _emit("local", message)


def log_remote(message: str) -> None:
    """Calls to the labyrinth service."""
    _emit("remote", message)


def log_error(message: str) -> None:
    _emit("error", message)


def log_success(message: str) -> None:
    _emit("success", message)
