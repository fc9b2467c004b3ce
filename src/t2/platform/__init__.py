"""
Platform Abstraction

Selects the paste and hotkey implementations for the running OS.
Platform modules are imported lazily so that, for example, Quartz is only
required on macOS.
"""

import sys
from typing import Callable

from t2.exceptions import PlatformNotSupportedError
from t2.platform.base import HotkeyDetectorBase, OutputHandlerBase

SUPPORTED_PLATFORMS = ("macos", "windows", "linux")

PLATFORM_ERROR_MESSAGES = {
    "macos": "Grant Accessibility permission to your terminal in System Settings.",
    "windows": "Ensure pynput is installed: pip install pynput",
    "linux": "Ensure X11 is running or install wtype for Wayland, and xdotool as a fallback.",
    "unknown": "Supported platforms: macOS, Windows, Linux",
}


def get_platform() -> str:
    """
    Detect the current platform.

    Returns:
        "macos", "windows", "linux", or "unknown"
    """
    if sys.platform == "darwin":
        return "macos"
    elif sys.platform == "win32":
        return "windows"
    elif sys.platform.startswith("linux"):
        return "linux"
    return "unknown"


def get_platform_error_message(platform: str) -> str:
    """Get a remediation hint for a platform-specific failure."""
    return PLATFORM_ERROR_MESSAGES.get(platform, PLATFORM_ERROR_MESSAGES["unknown"])


def create_output_handler(paste_delay: float = 0.2) -> OutputHandlerBase:
    """
    Create the paste collaborator for the current platform.

    Raises:
        PlatformNotSupportedError: If the platform has no implementation.
    """
    platform = get_platform()
    if platform == "macos":
        from t2.platform.macos.output_handler import MacOSOutputHandler
        return MacOSOutputHandler(paste_delay=paste_delay)
    elif platform == "windows":
        from t2.platform.windows.output_handler import WindowsOutputHandler
        return WindowsOutputHandler()
    elif platform == "linux":
        from t2.platform.linux.output_handler import LinuxOutputHandler
        return LinuxOutputHandler()
    raise PlatformNotSupportedError(f"No output handler for platform: {sys.platform}")


def create_hotkey_detector(
    on_press: Callable[[], None],
    on_release: Callable[[], None],
) -> HotkeyDetectorBase:
    """
    Create the hold-to-talk hotkey detector for the current platform.

    Raises:
        PlatformNotSupportedError: If the platform has no implementation.
    """
    platform = get_platform()
    if platform == "macos":
        from t2.platform.macos.hotkey_detector import MacOSHotkeyDetector
        return MacOSHotkeyDetector(on_press, on_release)
    elif platform in ("windows", "linux"):
        from t2.platform.modifier_hotkey import ModifierHotkeyDetector
        return ModifierHotkeyDetector(on_press, on_release)
    raise PlatformNotSupportedError(f"No hotkey detector for platform: {sys.platform}")


__all__ = [
    "HotkeyDetectorBase",
    "OutputHandlerBase",
    "PLATFORM_ERROR_MESSAGES",
    "SUPPORTED_PLATFORMS",
    "create_hotkey_detector",
    "create_output_handler",
    "get_platform",
    "get_platform_error_message",
]
