"""
Cross-platform Hotkey Detector

Tracks Ctrl+Shift with a pynput keyboard listener (Windows and Linux).
"""

import logging
from typing import Callable, Optional, Set

from pynput import keyboard

from t2.platform.base import HotkeyDetectorBase

logger = logging.getLogger(__name__)

CTRL_KEYS = {keyboard.Key.ctrl, keyboard.Key.ctrl_l, keyboard.Key.ctrl_r}
SHIFT_KEYS = {keyboard.Key.shift, keyboard.Key.shift_l, keyboard.Key.shift_r}


class ModifierHotkeyDetector(HotkeyDetectorBase):
    """Detects Ctrl+Shift hold from key press/release events."""

    def __init__(
        self,
        on_press: Callable[[], None],
        on_release: Callable[[], None],
    ):
        super().__init__(on_press, on_release)
        self._down: Set = set()
        self._listener: Optional[keyboard.Listener] = None

    def _combo_held(self) -> bool:
        return bool(self._down & CTRL_KEYS) and bool(self._down & SHIFT_KEYS)

    def _on_key_press(self, key) -> None:
        if key in CTRL_KEYS or key in SHIFT_KEYS:
            self._down.add(key)
            self._update_held(self._combo_held())

    def _on_key_release(self, key) -> None:
        if key in self._down:
            self._down.discard(key)
            self._update_held(self._combo_held())

    def start(self) -> None:
        """Start the keyboard listener."""
        self._listener = keyboard.Listener(
            on_press=self._on_key_press,
            on_release=self._on_key_release,
        )
        self._listener.start()
        logger.info(f"Hotkey detector started. Hold {self.get_hotkey_description()} to record.")

    def stop(self) -> None:
        """Stop the keyboard listener."""
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
        self._down.clear()
