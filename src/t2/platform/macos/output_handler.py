"""
macOS Output Handler

Pastes text via clipboard and an AppleScript Cmd+V keystroke.
"""

import logging
import subprocess
import time

import pyperclip

from t2.platform.base import OutputHandlerBase
from t2.exceptions import PasteError

logger = logging.getLogger(__name__)

PASTE_SCRIPT = 'tell application "System Events" to keystroke "v" using command down'

# Second attempt reports AppleScript errors through stdout instead of failing silently
PASTE_SCRIPT_WITH_ERRORS = """
try
    tell application "System Events"
        keystroke "v" using command down
    end tell
on error errorMessage
    return "Error: " & errorMessage
end try"""

RETRY_DELAY = 0.5


class MacOSOutputHandler(OutputHandlerBase):
    """Pastes transcribed text into the active app on macOS."""

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

    def _run_osascript(self, script: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            ['osascript', '-e', script],
            check=True,
            capture_output=True,
            timeout=10
        )

    def send_paste_shortcut(self) -> None:
        """
        Simulate Cmd+V, retrying once with a try-block script.

        Raises:
            PasteError: If both attempts fail
        """
        try:
            self._run_osascript(PASTE_SCRIPT)
            return
        except FileNotFoundError as e:
            raise PasteError("osascript not found - this module requires macOS") from e
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as first:
            logger.warning(f"Paste attempt failed, retrying: {first}")
            first_error = first

        time.sleep(RETRY_DELAY)
        try:
            self._run_osascript(PASTE_SCRIPT_WITH_ERRORS)
        except subprocess.CalledProcessError as e:
            output = (e.stdout or b"").decode() + (e.stderr or b"").decode()
            raise PasteError(
                f"Paste failed - first attempt: {first_error}, second attempt: {e}, output: {output}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise PasteError("Paste operation timed out") from e
