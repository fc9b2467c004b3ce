"""
Configuration Module
Loads and validates settings from environment variables and resolves the
AssemblyAI API key.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from dotenv import load_dotenv

from t2.exceptions import ConfigurationError
from t2.recording_gate import (
    DEFAULT_MAX_SILENCE_CHUNKS,
    DEFAULT_QUICK_PRESS_THRESHOLD,
    DEFAULT_SILENCE_THRESHOLD,
)
from t2.streaming_client import STREAMING_URL

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "t2"
CONFIG_FILE_NAME = "config.json"
METRICS_SUBDIR = "metrics"

API_KEY_ENV = "ASSEMBLYAI_API_KEY"
API_KEY_MIN_LENGTH = 30
API_KEY_MAX_LENGTH = 50

VALID_SAMPLE_RATES = [8000, 16000, 22050, 44100, 48000]


def config_dir() -> Path:
    """Directory holding the T2 config file and metrics."""
    return Path.home() / ".config" / CONFIG_DIR_NAME


def config_path() -> Path:
    """Full path to the JSON config file."""
    return config_dir() / CONFIG_FILE_NAME


def metrics_dir() -> Path:
    """Directory for usage metrics."""
    return config_dir() / METRICS_SUBDIR


def load_config_file(path: Optional[Path] = None) -> dict:
    """
    Read the JSON config file.

    Returns:
        The parsed settings, or an empty dict if the file doesn't exist.

    Raises:
        ConfigurationError: If the file exists but can't be read or parsed.
    """
    path = path or config_path()
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data


def save_config_file(data: dict, path: Optional[Path] = None) -> Path:
    """
    Write the JSON config file with user-only permissions.

    Raises:
        ConfigurationError: If the file can't be written.
    """
    path = path or config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        os.chmod(path, 0o600)
    except OSError as e:
        raise ConfigurationError(f"Failed to save config file {path}: {e}") from e
    return path


def validate_api_key(api_key: str) -> bool:
    """Basic sanity check: AssemblyAI keys are around 32 characters."""
    return API_KEY_MIN_LENGTH <= len(api_key) <= API_KEY_MAX_LENGTH


def prompt_for_api_key(input_fn: Callable[[str], str] = input) -> str:
    """
    Ask the user for their API key on the terminal.

    Raises:
        ConfigurationError: If the key is empty or the user rejects an
            unusual-looking key.
    """
    print("AssemblyAI API key not found.")
    print("To get your free API key:")
    print("   1. Visit: https://www.assemblyai.com/")
    print("   2. Sign up and get your API key from the dashboard")
    print()
    try:
        api_key = input_fn("Please enter your AssemblyAI API key: ").strip()
    except EOFError as e:
        raise ConfigurationError("Failed to read API key from input") from e

    if not api_key:
        raise ConfigurationError("API key cannot be empty")

    if not validate_api_key(api_key):
        print(f"[Warning] API key format seems unusual "
              f"(expected {API_KEY_MIN_LENGTH}-{API_KEY_MAX_LENGTH} characters)")
        answer = input_fn("Continue anyway? (y/n): ").strip().lower()
        if answer not in ("y", "yes"):
            raise ConfigurationError("API key validation cancelled")

    return api_key


def get_api_key(input_fn: Callable[[str], str] = input,
                path: Optional[Path] = None) -> str:
    """
    Resolve the API key.

    Priority: environment variable, .env file, config file, interactive
    prompt. A prompted key is saved to the config file.

    Raises:
        ConfigurationError: If no key can be obtained.
    """
    api_key = os.environ.get(API_KEY_ENV)
    if api_key:
        return api_key

    load_dotenv()
    api_key = os.environ.get(API_KEY_ENV)
    if api_key:
        return api_key

    try:
        stored = load_config_file(path).get("assemblyai_key")
    except ConfigurationError as e:
        logger.warning(str(e))
        stored = None
    if stored:
        return stored

    api_key = prompt_for_api_key(input_fn)
    try:
        saved_to = save_config_file({"assemblyai_key": api_key}, path)
        print(f"API key saved to {saved_to}")
    except ConfigurationError as e:
        print(f"[Warning] Failed to save API key: {e}")
        print("          You'll need to enter it again next time")
    return api_key


@dataclass
class Config:
    """Application configuration from environment variables."""

    # Resolved separately by get_api_key() when not set in the environment
    api_key: Optional[str] = None

    streaming_url: str = STREAMING_URL

    # Audio capture
    sample_rate: int = 16000
    frames_per_buffer: int = 1024

    # Recording gate
    silence_threshold: float = DEFAULT_SILENCE_THRESHOLD
    max_silence_chunks: int = DEFAULT_MAX_SILENCE_CHUNKS
    quick_press_threshold: float = DEFAULT_QUICK_PRESS_THRESHOLD

    # Seconds to wait for the service to confirm a Terminate
    termination_timeout: float = 1.0

    beep_enabled: bool = True
    metrics_enabled: bool = True
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """
        Load configuration from environment variables.

        Environment Variables:
            ASSEMBLYAI_API_KEY: Optional here. AssemblyAI API key.
            T2_STREAMING_URL: Optional. Streaming endpoint (default: AssemblyAI v3).
            T2_SAMPLE_RATE: Optional. Audio sample rate in Hz (default: 16000).
            T2_FRAMES_PER_BUFFER: Optional. Samples per audio frame (default: 1024).
            T2_SILENCE_THRESHOLD: Optional. RMS level treated as silence (default: 150).
            T2_MAX_SILENCE_CHUNKS: Optional. Silent frames before prolonged silence (default: 20).
            T2_QUICK_PRESS_MS: Optional. Minimum press duration in ms (default: 800).
            T2_TERMINATION_TIMEOUT: Optional. Seconds to wait for termination (default: 1.0).
            T2_BEEP_ENABLED: Optional. Play start/stop beeps (default: true).
            T2_METRICS_ENABLED: Optional. Record usage metrics (default: true).
            T2_DEBUG: Optional. Debug logging (default: false).

        Returns:
            Config instance with loaded values.

        Raises:
            ValueError: If a numeric variable can't be parsed.
        """
        load_dotenv()

        def parse_bool(value: str, default: bool) -> bool:
            if not value:
                return default
            return value.lower() in ("true", "1", "yes")

        return cls(
            api_key=os.environ.get(API_KEY_ENV) or None,
            streaming_url=os.environ.get("T2_STREAMING_URL", STREAMING_URL),
            sample_rate=int(os.environ.get("T2_SAMPLE_RATE", "16000")),
            frames_per_buffer=int(os.environ.get("T2_FRAMES_PER_BUFFER", "1024")),
            silence_threshold=float(
                os.environ.get("T2_SILENCE_THRESHOLD", str(DEFAULT_SILENCE_THRESHOLD))
            ),
            max_silence_chunks=int(
                os.environ.get("T2_MAX_SILENCE_CHUNKS", str(DEFAULT_MAX_SILENCE_CHUNKS))
            ),
            quick_press_threshold=int(
                os.environ.get("T2_QUICK_PRESS_MS", str(int(DEFAULT_QUICK_PRESS_THRESHOLD * 1000)))
            ) / 1000.0,
            termination_timeout=float(os.environ.get("T2_TERMINATION_TIMEOUT", "1.0")),
            beep_enabled=parse_bool(os.environ.get("T2_BEEP_ENABLED", ""), True),
            metrics_enabled=parse_bool(os.environ.get("T2_METRICS_ENABLED", ""), True),
            debug=parse_bool(os.environ.get("T2_DEBUG", ""), False),
        )

    def validate(self) -> List[str]:
        """
        Validate configuration values.

        Returns:
            List of warning messages (empty if no warnings).

        Raises:
            ValueError: If configuration values are invalid.
        """
        warnings = []

        if not self.streaming_url.startswith(("ws://", "wss://")):
            raise ValueError(
                f"T2_STREAMING_URL must be a ws:// or wss:// URL. Got: {self.streaming_url}"
            )

        if self.sample_rate <= 0:
            raise ValueError("T2_SAMPLE_RATE must be positive")

        if self.sample_rate not in VALID_SAMPLE_RATES:
            warnings.append(
                f"Unusual sample rate {self.sample_rate}. "
                f"Common values are: {VALID_SAMPLE_RATES}"
            )

        if self.frames_per_buffer <= 0:
            raise ValueError("T2_FRAMES_PER_BUFFER must be positive")

        if self.silence_threshold < 0:
            raise ValueError("T2_SILENCE_THRESHOLD must be non-negative")

        if self.max_silence_chunks <= 0:
            raise ValueError("T2_MAX_SILENCE_CHUNKS must be positive")

        if self.quick_press_threshold < 0:
            raise ValueError("T2_QUICK_PRESS_MS must be non-negative")

        if self.termination_timeout <= 0:
            raise ValueError("T2_TERMINATION_TIMEOUT must be positive")

        if self.termination_timeout > 10:
            warnings.append(
                f"Long termination timeout ({self.termination_timeout}s) will delay every paste"
            )

        if self.api_key and not validate_api_key(self.api_key):
            warnings.append(
                f"API key format seems unusual "
                f"(expected {API_KEY_MIN_LENGTH}-{API_KEY_MAX_LENGTH} characters)"
            )

        return warnings
