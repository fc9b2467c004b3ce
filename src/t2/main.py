"""
T2 - Talk to Text

Main application entry point.
Wires the hotkey, audio capture, streaming transcription, paste and metrics
together and provides the command-line interface.
"""

import argparse
import logging
import signal
import sys
import time
from typing import List, Optional

from t2 import __version__
from t2.audio_recorder import AudioRecorder
from t2.beep import play_beep
from t2.config import (
    Config,
    config_path,
    get_api_key,
    load_config_file,
    metrics_dir,
)
from t2.exceptions import (
    ConfigurationError,
    MetricsError,
    PlatformNotSupportedError,
    StreamingConnectionError,
)
from t2.metrics import MetricsManager, StatsFormatter
from t2.metrics.manager import MAX_TYPING_SPEED, MIN_TYPING_SPEED
from t2.platform import (
    create_hotkey_detector,
    create_output_handler,
    get_platform,
    get_platform_error_message,
)
from t2.recording_gate import RecordingGate
from t2.session import SessionOrchestrator
from t2.streaming_client import StreamingSessionClient
from t2.terminal import TerminalControl
from t2.transcript_assembler import TranscriptAssembler

logger = logging.getLogger(__name__)

LOG_FILE = "t2.log"


class T2App:
    """Main application class coordinating all modules."""

    def __init__(self, config: Config, api_key: str):
        """
        Initialize all components.

        Args:
            config: Application configuration loaded from environment.
            api_key: Resolved AssemblyAI API key.

        Raises:
            PlatformNotSupportedError: If there's no paste or hotkey support
                for this platform.
        """
        platform = get_platform()
        logger.info(f"Platform detected: {platform}")

        self.config = config
        # Debug logs share the console, so redrawing would overwrite them
        self.terminal = TerminalControl(in_place=not config.debug)
        self._pending_output: Optional[str] = None

        self.client = StreamingSessionClient(
            url=config.streaming_url,
            sample_rate=config.sample_rate,
        )
        self.assembler = TranscriptAssembler()
        self.gate = RecordingGate(
            silence_threshold=config.silence_threshold,
            max_silence_chunks=config.max_silence_chunks,
            quick_press_threshold=config.quick_press_threshold,
        )
        self.recorder = AudioRecorder(
            sample_rate=config.sample_rate,
            frames_per_buffer=config.frames_per_buffer,
        )
        logger.debug(
            f"Audio recorder initialized (sample_rate={config.sample_rate}, "
            f"frames_per_buffer={config.frames_per_buffer})"
        )

        self.output = create_output_handler()
        logger.info(f"Output handler initialized: {type(self.output).__name__}")

        self.metrics: Optional[MetricsManager] = None
        if config.metrics_enabled:
            try:
                self.metrics = MetricsManager(metrics_dir())
            except MetricsError as e:
                # Metrics are informational; run without them
                logger.warning(f"Metrics disabled: {e}")
                print(f"[Warning] Metrics disabled: {e}")
        self.formatter = StatsFormatter()

        self.orchestrator = SessionOrchestrator(
            client=self.client,
            assembler=self.assembler,
            gate=self.gate,
            recorder=self.recorder,
            output=self.output,
            api_key=api_key,
            on_session_complete=self.handle_session_complete,
            beep=play_beep if config.beep_enabled else None,
            status=self.handle_status,
            termination_timeout=config.termination_timeout,
        )

        self.detector = create_hotkey_detector(
            on_press=self.orchestrator.handle_press,
            on_release=self.orchestrator.handle_release,
        )
        logger.info(f"Hotkey detector initialized: {type(self.detector).__name__}")

        self._api_key = api_key
        self._running = False
        self._stopped = False

    @property
    def is_running(self) -> bool:
        """Whether the application is running."""
        return self._running

    def handle_status(self, line: str) -> None:
        """Print a status line from the orchestrator."""
        if line.startswith("[Output]") and self.metrics is not None:
            # Printed together with the metrics summary
            self._pending_output = line
            return
        self.terminal.print_line(line)

    def handle_session_complete(self, text: str, duration: float) -> None:
        """Record metrics for a pasted session and show the summary."""
        header = self._pending_output
        self._pending_output = None
        if self.metrics is None:
            return

        lines = [header] if header else []
        try:
            session = self.metrics.record_session(text, duration)
        except MetricsError as e:
            logger.warning(f"Failed to record session metrics: {e}")
            note = f"(metrics not saved: {e})"
            self.terminal.print_line(f"{header} {note}" if header else f"[Warning] {note}")
            return

        try:
            today = self.metrics.get_today_metrics()
        except MetricsError as e:
            logger.warning(f"Failed to load today's metrics: {e}")
            today = None

        lines.extend(self.formatter.session_summary_lines(session, today))
        self.terminal.update_in_place(lines)

    def connect(self) -> None:
        """
        Open the initial streaming connection.

        Raises:
            StreamingConnectionError: If the service can't be reached.
        """
        logger.info("Connecting to streaming service")
        self.client.connect(self._api_key)

    def run(self) -> None:
        """Connect, start listening for the hotkey and block until stopped."""
        self.connect()
        self._running = True
        self.detector.start()
        self._print_banner()

        while self._running:
            time.sleep(0.1)

    def _print_banner(self) -> None:
        """Print welcome message and instructions."""
        hotkey = self.detector.get_hotkey_description()

        print("=" * 55)
        print("  T2 - Talk to Text")
        print("=" * 55)
        print()
        print(f"  Platform: {get_platform()}")
        print(f"  Hotkey: {hotkey} (hold to record)")
        print()
        print("  Usage:")
        print(f"    1. HOLD {hotkey:<20} -> Recording starts")
        print("    2. Speak while holding")
        print(f"    3. RELEASE {hotkey:<17} -> Transcribes & pastes")
        print()
        print("  Press Ctrl+C to exit")
        print("=" * 55)
        print()

    def stop(self) -> None:
        """Stop the application gracefully. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        self._running = False

        self.detector.stop()
        self.orchestrator.shutdown()

        print("\nT2 stopped. Goodbye!")


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the application.

    Without debug only warnings reach the console, which is shared with
    the in-place session summary.

    Args:
        debug: If True, enable debug-level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    format_str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=format_str,
        datefmt=date_format
    )

    if debug:
        file_handler = logging.FileHandler(LOG_FILE)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(format_str, datefmt=date_format))
        logging.getLogger().addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="t2",
        description="Hold Ctrl+Shift to talk; release to paste the transcript.",
    )
    parser.add_argument("--version", action="store_true",
                        help="Show current version")
    parser.add_argument("--show-config", action="store_true",
                        help="Show current configuration location")
    parser.add_argument("--reset-key", action="store_true",
                        help="Reset/reconfigure AssemblyAI API key")
    parser.add_argument("--stats", action="store_true",
                        help="Show usage statistics and productivity metrics")
    parser.add_argument("--reset-stats", action="store_true",
                        help="Clear all usage statistics")
    parser.add_argument("--set-typing-speed", type=int, metavar="WPM",
                        help=f"Set your typing speed in words per minute "
                             f"({MIN_TYPING_SPEED}-{MAX_TYPING_SPEED})")
    return parser


def mask_key(api_key: str) -> str:
    """Hide all but the last four characters of a key."""
    if len(api_key) <= 4:
        return "*" * len(api_key)
    return "*" * (len(api_key) - 4) + api_key[-4:]


def show_config() -> int:
    path = config_path()
    if not path.exists():
        print("Config file does not exist yet")
        return 0

    print(f"Config file location: {path}")
    try:
        data = load_config_file(path)
    except ConfigurationError as e:
        print(f"[Error] {e}")
        return 1
    print()
    print("Config file contents:")
    for key, value in data.items():
        if key == "assemblyai_key" and isinstance(value, str):
            value = mask_key(value)
        print(f"   {key}: {value}")
    return 0


def reset_key() -> None:
    """Remove the stored config so the next start prompts for a key."""
    path = config_path()
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        print(f"[Warning] Failed to remove existing config: {e}")
    print("API key reset. You'll be prompted for a new one.")


def _open_metrics() -> MetricsManager:
    try:
        return MetricsManager(metrics_dir())
    except MetricsError as e:
        print(f"[Error] Failed to initialize metrics: {e}")
        sys.exit(1)


def show_stats() -> int:
    manager = _open_metrics()
    formatter = StatsFormatter()

    print(formatter.total_stats(manager.get_total_metrics()))
    print()
    print(formatter.weekly_stats(manager.get_recent_days(7)))
    print()
    print(f"Current typing speed setting: {manager.typing_speed} WPM")
    print("Use --set-typing-speed to update for more accurate time savings")
    return 0


def reset_stats() -> int:
    manager = _open_metrics()
    try:
        removed = manager.clear_all_metrics()
    except MetricsError as e:
        print(f"[Error] Failed to clear metrics: {e}")
        return 1
    logger.debug(f"Removed {removed} daily metrics files")
    print("All usage statistics have been cleared")
    return 0


def set_typing_speed(wpm: int) -> int:
    manager = _open_metrics()
    try:
        manager.set_typing_speed(wpm)
    except ValueError as e:
        print(f"[Error] {e}")
        return 1
    except MetricsError as e:
        print(f"[Error] Failed to save typing speed: {e}")
        return 1
    print(f"Typing speed updated to {wpm} WPM")
    print("This will be used to calculate more accurate time savings in future sessions")
    return 0


def run_daemon(config: Config) -> int:
    """Resolve the key, build the app and run until a signal arrives."""
    try:
        api_key = config.api_key or get_api_key()
    except ConfigurationError as e:
        print(f"Error: {e}")
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        app = T2App(config=config, api_key=api_key)
    except PlatformNotSupportedError as e:
        print(f"Error: {e}")
        print(get_platform_error_message(get_platform()))
        logger.error(f"Platform not supported: {e}")
        return 1

    def signal_handler(sig, frame):
        logger.info("Received shutdown signal")
        app.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("T2 running")
        app.run()
    except StreamingConnectionError as e:
        print(f"Error: Failed to connect to AssemblyAI streaming API: {e}")
        logger.error(f"Initial connection failed: {e}")
        app.stop()
        return 1
    except Exception as e:
        print(f"Fatal error: {e}")
        logger.exception(f"Fatal error during execution: {e}")
        app.stop()
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"T2 (Talk to Text) {__version__}")
        return
    if args.show_config:
        sys.exit(show_config())
    if args.stats:
        sys.exit(show_stats())
    if args.reset_stats:
        sys.exit(reset_stats())
    if args.set_typing_speed is not None:
        sys.exit(set_typing_speed(args.set_typing_speed))
    if args.reset_key:
        reset_key()

    try:
        config = Config.from_env()
        warnings = config.validate()
    except ValueError as e:
        print(f"Error: {e}")
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    setup_logging(debug=config.debug)
    logger.info("T2 starting...")
    for warning in warnings:
        print(f"Warning: {warning}")
        logger.warning(warning)

    sys.exit(run_daemon(config))


if __name__ == "__main__":
    main()
