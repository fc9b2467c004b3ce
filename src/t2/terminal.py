"""
Terminal Control
Redraws the session summary over the previous one using ANSI escapes.
"""

import sys
from typing import List, Optional, TextIO

CURSOR_UP = "\033[{n}A"
CLEAR_LINE = "\033[2K\r"


class TerminalControl:
    """In-place multi-line updates for an interactive terminal."""

    def __init__(self, stream: Optional[TextIO] = None, in_place: bool = True):
        self.stream = stream or sys.stdout
        self.in_place = in_place
        self._previous_lines = 0

    def is_terminal(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())

    def update_in_place(self, lines: List[str]) -> None:
        """
        Print lines, overwriting the block printed by the previous call.

        When the stream isn't a TTY, or in-place updates are disabled, the
        lines are simply appended.
        """
        if not self.in_place or not self.is_terminal():
            for line in lines:
                self.stream.write(line + "\n")
            self.stream.flush()
            return

        if self._previous_lines:
            self.stream.write(CURSOR_UP.format(n=self._previous_lines))
        # A shorter block must still wipe every line of the longer previous one
        for i in range(max(len(lines), self._previous_lines)):
            self.stream.write(CLEAR_LINE)
            self.stream.write((lines[i] if i < len(lines) else "") + "\n")
        self.stream.flush()
        self._previous_lines = max(len(lines), self._previous_lines)

    def print_line(self, line: str) -> None:
        """Print an ordinary line; the next update starts a new block."""
        self.stream.write(line + "\n")
        self.stream.flush()
        self.reset()

    def reset(self) -> None:
        """Forget the previous block so the next update starts fresh."""
        self._previous_lines = 0
