"""
Linux Output Handler

Pastes text via clipboard and a Ctrl+V keystroke.

On X11: Uses pynput with xdotool as fallback.
On Wayland: Uses wtype when pynput can't reach the compositor.
"""

import logging
import os
import shutil
import subprocess
from typing import Optional

import pyperclip
from pynput.keyboard import Controller, Key

from t2.platform.base import OutputHandlerBase
from t2.exceptions import PasteError

logger = logging.getLogger(__name__)


def get_display_server() -> str:
    """
    Get the current display server type.

    Returns:
        "wayland", "x11", or "unknown"
    """
    session_type = os.environ.get("XDG_SESSION_TYPE", "").lower()
    if session_type in ("wayland", "x11"):
        return session_type
    elif os.environ.get("WAYLAND_DISPLAY"):
        return "wayland"
    elif os.environ.get("DISPLAY"):
        return "x11"
    return "unknown"


def is_tool_available(tool_name: str) -> bool:
    """Check if a command-line tool is available in PATH."""
    return shutil.which(tool_name) is not None


class LinuxOutputHandler(OutputHandlerBase):
    """
    Pastes transcribed text into the active app on Linux.

    Shortcut delivery, in order of preference:
    - Wayland: wtype
    - X11: pynput, then xdotool
    """

    def __init__(self, paste_delay: float = 0.05):
        """
        Initialize output handler.

        Args:
            paste_delay: Pause between setting the clipboard and pasting
        """
        super().__init__(paste_delay)
        self._display_server = get_display_server()
        self._has_xdotool = is_tool_available("xdotool")
        self._has_wtype = is_tool_available("wtype")

        self._keyboard: Optional[Controller] = None
        try:
            self._keyboard = Controller()
        except Exception as e:
            logger.warning(f"Could not initialize pynput keyboard controller: {e}")

        logger.debug(
            f"LinuxOutputHandler initialized: display_server={self._display_server}, "
            f"xdotool={self._has_xdotool}, wtype={self._has_wtype}, "
            f"pynput={'available' if self._keyboard else 'unavailable'}"
        )

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

    def _run_tool(self, args: list) -> None:
        try:
            subprocess.run(args, check=True, capture_output=True, timeout=5)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode() if e.stderr else str(e)
            raise PasteError(f"{args[0]} paste failed: {stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise PasteError(f"{args[0]} paste timed out") from e

    def send_paste_shortcut(self) -> None:
        """
        Simulate Ctrl+V with the best available tool.

        Raises:
            PasteError: If no method succeeds
        """
        if self._display_server == "wayland" and self._has_wtype:
            self._run_tool(["wtype", "-M", "ctrl", "v", "-m", "ctrl"])
            return

        if self._keyboard is not None:
            try:
                with self._keyboard.pressed(Key.ctrl):
                    self._keyboard.press('v')
                    self._keyboard.release('v')
                return
            except Exception as e:
                if not self._has_xdotool:
                    raise PasteError(f"Failed to paste text: {e}") from e
                logger.warning(f"pynput paste failed, falling back to xdotool: {e}")

        if self._has_xdotool:
            self._run_tool(["xdotool", "key", "--clearmodifiers", "ctrl+v"])
            return

        raise PasteError("No paste method available (install xdotool or wtype)")
