"""
Pytest configuration and fixtures for t2 tests.

IMPORTANT: This file sets up mocks for platform-specific modules BEFORE any
test imports happen, so the macOS and keyboard-hook code can be imported on
headless CI machines.
"""

import logging
import sys
from unittest.mock import MagicMock

import numpy as np
import pytest


def _setup_global_mocks():
    """
    Set up mocks for modules that may not be importable during testing.

    - Quartz only exists on macOS
    - pynput refuses to import without a display server
    """
    if sys.platform != 'darwin' and 'Quartz' not in sys.modules:
        sys.modules['Quartz'] = MagicMock()

    try:
        import pynput.keyboard  # noqa: F401
    except ImportError:
        mock_pynput = MagicMock()
        sys.modules['pynput'] = mock_pynput
        sys.modules['pynput.keyboard'] = mock_pynput.keyboard


_setup_global_mocks()


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (may require hardware)"
    )


# =============================================================================
# LOGGING PROTECTION
# =============================================================================

@pytest.fixture(autouse=True)
def _protect_logging_handlers():
    """
    Protect logging handlers from being corrupted by mocks.

    MagicMock can replace handler attributes like 'level', which makes the
    logging module fail when comparing levels.
    """
    def _fix_handler_levels():
        for handler in logging.root.handlers[:]:
            if not isinstance(handler.level, int):
                handler.level = logging.NOTSET
        for name in list(logging.Logger.manager.loggerDict.keys()):
            logger = logging.getLogger(name)
            for handler in logger.handlers[:]:
                if not isinstance(handler.level, int):
                    handler.level = logging.NOTSET

    _fix_handler_levels()
    yield
    _fix_handler_levels()


# =============================================================================
# AUDIO FRAME HELPERS
# =============================================================================

def make_frame(rms: float, samples: int = 1024) -> bytes:
    """
    Build a PCM16 frame whose RMS equals `rms` exactly.

    A square wave of amplitude A has RMS A, so alternating +A/-A works.
    """
    amplitude = int(round(rms))
    data = np.full(samples, amplitude, dtype='<i2')
    data[1::2] = -amplitude
    return data.tobytes()


@pytest.fixture(scope="session")
def frame_factory():
    """Provide make_frame to tests (session scope keeps hypothesis happy)."""
    return make_frame


@pytest.fixture
def silent_frame():
    """A frame of digital silence."""
    return make_frame(0)


@pytest.fixture
def speech_frame():
    """A frame well above the default silence threshold."""
    return make_frame(1000)


# =============================================================================
# ENVIRONMENT FIXTURES
# =============================================================================

T2_ENV_VARS = [
    "ASSEMBLYAI_API_KEY",
    "T2_STREAMING_URL",
    "T2_SAMPLE_RATE",
    "T2_FRAMES_PER_BUFFER",
    "T2_SILENCE_THRESHOLD",
    "T2_MAX_SILENCE_CHUNKS",
    "T2_QUICK_PRESS_MS",
    "T2_TERMINATION_TIMEOUT",
    "T2_BEEP_ENABLED",
    "T2_METRICS_ENABLED",
    "T2_DEBUG",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all T2 environment variables and stub out .env loading."""
    for var in T2_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("t2.config.load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """Point Path.home() at a temporary directory."""
    monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path)
    return tmp_path


API_KEY = "a" * 32


@pytest.fixture
def api_key():
    """A well-formed AssemblyAI API key."""
    return API_KEY
