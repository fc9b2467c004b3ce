"""
Windows Output Handler

Pastes text via clipboard and a pynput Ctrl+V keystroke.
"""

import pyperclip
from pynput.keyboard import Controller, Key

from t2.platform.base import OutputHandlerBase
from t2.exceptions import PasteError


class WindowsOutputHandler(OutputHandlerBase):
    """Pastes transcribed text into the active app on Windows."""

    def __init__(self, paste_delay: float = 0.05):
        """
        Initialize output handler.

        Args:
            paste_delay: Pause between setting the clipboard and pasting
        """
        super().__init__(paste_delay)
        self._keyboard = Controller()

    def copy_to_clipboard(self, text: str) -> None:
        """
        Copy text to system clipboard.

        Raises:
            PasteError: If clipboard operation fails
        """
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise PasteError(f"Failed to copy to clipboard: {e}") from e

    def send_paste_shortcut(self) -> None:
        """
        Simulate Ctrl+V.

        Raises:
            PasteError: If the keystroke can't be sent
        """
        try:
            with self._keyboard.pressed(Key.ctrl):
                self._keyboard.press('v')
                self._keyboard.release('v')
        except Exception as e:
            raise PasteError(f"Failed to paste text: {e}") from e
