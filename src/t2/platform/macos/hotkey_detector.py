"""
macOS Hotkey Detector

Polls the HID modifier state for Ctrl+Shift using Quartz.
Hold Ctrl+Shift to record, release to transcribe.
"""

import logging
import threading
from typing import Callable, Optional

import Quartz

from t2.platform.base import HotkeyDetectorBase

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1
CTRL_FLAG = Quartz.kCGEventFlagMaskControl
SHIFT_FLAG = Quartz.kCGEventFlagMaskShift


def ctrl_shift_held() -> bool:
    """Whether Ctrl and Shift are both currently down."""
    flags = Quartz.CGEventSourceFlagsState(Quartz.kCGEventSourceStateHIDSystemState)
    return (flags & CTRL_FLAG) != 0 and (flags & SHIFT_FLAG) != 0


class MacOSHotkeyDetector(HotkeyDetectorBase):
    """Detects Ctrl+Shift hold by polling modifier flags."""

    def __init__(
        self,
        on_press: Callable[[], None],
        on_release: Callable[[], None],
        poll_interval: float = POLL_INTERVAL,
    ):
        super().__init__(on_press, on_release)
        self.poll_interval = poll_interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            self._update_held(ctrl_shift_held())
            self._stop_event.wait(self.poll_interval)

    def start(self) -> None:
        """Start polling for Ctrl+Shift."""
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, name="t2-hotkey", daemon=True)
        self._thread.start()
        logger.info(f"Hotkey detector started. Hold {self.get_hotkey_description()} to record.")

    def stop(self) -> None:
        """Stop polling."""
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
        self._thread = None
