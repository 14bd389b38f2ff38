"""
Non-blocking key reader for the terminal UI
"""

import os
import select
import sys
import termios
import tty
from typing import Optional

ESCAPE_SEQUENCES = {
    "[A": "UP",
    "[B": "DOWN",
    "[C": "RIGHT",
    "[D": "LEFT",
    "OA": "UP",
    "OB": "DOWN",
    "OC": "RIGHT",
    "OD": "LEFT",
}


def decode_escape(sequence: str) -> str:
    """Map the bytes following ESC to a key name; a lone ESC is "ESC" """
    return ESCAPE_SEQUENCES.get(sequence, "ESC")


def decode_key(key: str) -> str:
    """Normalize a single character read from the terminal"""
    if key in {"\r", "\n"}:
        return "ENTER"
    if key == "\x03":
        return "QUIT"
    return key


class KeyReader:
    """
    Puts stdin in cbreak mode and reads one key at a time.

    Usage:
        with KeyReader() as keys:
            key = keys.read_key(timeout=0.1)  # None when nothing was pressed
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stdin
        self._fd: Optional[int] = None
        self._old_settings = None

    def __enter__(self) -> "KeyReader":
        self._fd = self.stream.fileno()
        self._old_settings = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._fd is not None and self._old_settings is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)

    def _read_char(self) -> str:
        return os.read(self._fd, 1).decode("utf-8", errors="ignore")

    def read_key(self, timeout: float) -> Optional[str]:
        """
        Wait up to timeout seconds for a key press

        Returns:
            Key name ("UP", "ENTER", "ESC", ...) or the character typed,
            None if no key arrived
        """
        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            return None
        key = self._read_char()
        if not key:
            return None
        if key != "\x1b":
            return decode_key(key)

        sequence = ""
        while select.select([self._fd], [], [], 0.001)[0]:
            sequence += self._read_char()
            if sequence and (sequence[-1].isalpha() or sequence.endswith("~") or len(sequence) >= 6):
                break
        return decode_escape(sequence)
