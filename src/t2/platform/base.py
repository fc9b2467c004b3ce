"""
Platform Abstraction - Base Classes

This module defines abstract base classes for platform-specific components.
Each platform (macOS, Windows, Linux) implements these interfaces with
platform-appropriate code.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable

from t2.exceptions import PasteError

logger = logging.getLogger(__name__)


class HotkeyDetectorBase(ABC):
    """
    Abstract base class for hold-to-talk hotkey detection.

    The hotkey is Ctrl+Shift held together:
    - macOS: modifier flags polled via Quartz CGEventSource
    - Windows/Linux: modifier state tracked with a pynput listener

    Subclasses report the raw held/not-held state through _update_held();
    the base class turns it into exactly one on_press per hold and one
    on_release per let-go.
    """

    def __init__(
        self,
        on_press: Callable[[], None],
        on_release: Callable[[], None],
    ):
        """
        Initialize hotkey detector with press/release callbacks.

        Args:
            on_press: Called when the hotkey becomes held (start recording)
            on_release: Called when the hotkey is let go (stop recording)
        """
        self.on_press = on_press
        self.on_release = on_release
        self._is_held = False
        self._edge_lock = threading.Lock()

    def _update_held(self, held: bool) -> None:
        with self._edge_lock:
            if held == self._is_held:
                return
            self._is_held = held

        callback = self.on_press if held else self.on_release
        try:
            callback()
        except Exception as e:
            logger.exception(f"Hotkey handler failed: {e}")

    @abstractmethod
    def start(self) -> None:
        """Start listening for the hotkey."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop listening and clean up resources."""
        pass

    def get_hotkey_description(self) -> str:
        """Human-readable description of the hotkey."""
        return "Ctrl+Shift"

    @property
    def is_held(self) -> bool:
        """Whether the hotkey is currently held."""
        return self._is_held


class OutputHandlerBase(ABC):
    """
    Abstract base class for pasting text into the active application.

    Each platform copies the text to the clipboard and sends the paste
    shortcut:
    - macOS: Cmd+V via osascript
    - Windows/Linux: Ctrl+V via pynput
    """

    def __init__(self, paste_delay: float = 0.2):
        """
        Initialize output handler.

        Args:
            paste_delay: Pause between setting the clipboard and pasting
        """
        self.paste_delay = paste_delay

    @abstractmethod
    def copy_to_clipboard(self, text: str) -> None:
        """
        Copy text to system clipboard.

        Raises:
            PasteError: If clipboard operation fails
        """
        pass

    @abstractmethod
    def send_paste_shortcut(self) -> None:
        """
        Send the platform paste shortcut to the focused application.

        Raises:
            PasteError: If the keystroke can't be sent
        """
        pass

    def paste(self, text: str) -> None:
        """
        Paste text at the cursor, leaving it on the clipboard as a backup.

        Args:
            text: Transcribed text to paste

        Raises:
            PasteError: If text is empty or any step fails
        """
        if not text:
            raise PasteError("Empty text")

        self.copy_to_clipboard(text)
        if self.paste_delay > 0:
            time.sleep(self.paste_delay)
        self.send_paste_shortcut()
