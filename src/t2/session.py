"""
Session Orchestrator Module
Drives one press/release cycle: capture, gating, streaming and transcript
assembly, then hands the result to the paste and metrics collaborators.
"""

import logging
import time
from enum import Enum, auto
from typing import Callable, Optional, Tuple

from t2.audio_recorder import AudioRecorder
from t2.exceptions import (
    AudioRecordingError,
    EmptyResultError,
    NotConnectedError,
    PasteError,
    StreamingConnectionError,
    TransportClosedError,
)
from t2.platform.base import OutputHandlerBase
from t2.recording_gate import GateVerdict, RecordingGate
from t2.streaming_client import StreamingSessionClient
from t2.transcript_assembler import TranscriptAssembler

logger = logging.getLogger(__name__)

DEFAULT_TERMINATION_TIMEOUT = 1.0
REFRESH_PAUSE = 0.1
CONNECT_SETTLE_PAUSE = 0.15


class SessionState(Enum):
    """Orchestrator state machine states."""
    IDLE = auto()
    RECORDING = auto()
    FINISHING = auto()


class SessionOutcome(Enum):
    """Terminal outcome of a release."""
    QUICK_PRESS = auto()
    SILENT = auto()
    PASTED = auto()
    PASTE_FAILED = auto()
    EMPTY_RESULT = auto()


class SessionOrchestrator:
    """Coordinates the streaming client, assembler, gate and recorder."""

    def __init__(
        self,
        client: StreamingSessionClient,
        assembler: TranscriptAssembler,
        gate: RecordingGate,
        recorder: AudioRecorder,
        output: OutputHandlerBase,
        api_key: str,
        on_session_complete: Optional[Callable[[str, float], None]] = None,
        beep: Optional[Callable[[str], None]] = None,
        status: Callable[[str], None] = print,
        termination_timeout: float = DEFAULT_TERMINATION_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Wire the session components together.

        Args:
            client: Streaming connection to the transcription service
            assembler: Per-session transcript reconciliation
            gate: Per-session loudness/duration gate
            recorder: Audio capture; its frames are routed through handle_frame
            output: Paste collaborator
            api_key: Credential used for (re)connecting
            on_session_complete: Called with (text, session_duration) after a
                successful paste
            beep: Called with "start"/"stop" for audible feedback
            status: Sink for user-facing status lines
            termination_timeout: Max seconds to wait for the service to
                confirm a terminate request
            clock: Monotonic time source
            sleep: Used for the fixed reconnect pauses
        """
        self.client = client
        self.assembler = assembler
        self.gate = gate
        self.recorder = recorder
        self.output = output
        self.api_key = api_key
        self.on_session_complete = on_session_complete
        self.beep = beep
        self._status = status
        self.termination_timeout = termination_timeout
        self._clock = clock
        self._sleep = sleep

        self._state = SessionState.IDLE
        self._press_time = 0.0
        self._dropped_frames = 0

        self.client.set_transcript_callback(self.handle_transcript)
        self.client.set_termination_callback(self.handle_termination)
        self.recorder.set_frame_callback(self.handle_frame)

    @property
    def state(self) -> SessionState:
        """Current orchestrator state."""
        return self._state

    def _ensure_connected(self) -> bool:
        if self.client.connection_needs_refresh():
            logger.info("Connection degraded, forcing refresh")
            self.client.close()
            self._sleep(REFRESH_PAUSE)

        if self.client.is_connected():
            return True

        logger.info("Reconnecting to streaming service")
        try:
            self.client.connect(self.api_key)
        except StreamingConnectionError as e:
            logger.error(f"Reconnection failed: {e}")
            self._status(f"[Error] Connection failed: {e}")
            self.client.report_session_failure()
            return False

        # No synchronous ack from the service; give the session a moment to begin
        self._sleep(CONNECT_SETTLE_PAUSE)
        return True

    def handle_press(self) -> None:
        """Called when the hotkey is pressed - start a session."""
        if self._state != SessionState.IDLE:
            logger.debug(f"Press ignored in state {self._state.name}")
            return

        if not self._ensure_connected():
            return

        self.assembler.reset()
        self.gate.reset()
        self._dropped_frames = 0
        self._press_time = self._clock()

        try:
            self.recorder.start_recording()
        except AudioRecordingError as e:
            logger.error(f"Could not start recording: {e}")
            self._status(f"[Error] Recording failed: {e}")
            return

        self._state = SessionState.RECORDING
        if self.beep:
            self.beep("start")
        logger.info("Recording started")

    def handle_frame(self, frame: bytes) -> None:
        """Called from the capture thread for every audio frame."""
        self.gate.on_frame(frame)
        if not self.gate.should_forward_frame():
            return
        try:
            self.client.send_audio(frame)
        except TransportClosedError as e:
            logger.warning(f"Audio dropped, connection closed: {e}")
        except NotConnectedError:
            self._dropped_frames += 1
            if self._dropped_frames == 1:
                logger.warning("Audio dropped, no connection")

    def handle_transcript(self, text: str, is_final: bool, end_of_turn: bool,
                          confidence: float) -> None:
        """Route an inbound turn to the assembler."""
        self.assembler.process_transcript(
            text, is_final, confidence=confidence, end_of_turn=end_of_turn
        )

    def handle_termination(self) -> None:
        """Route the service's termination acknowledgement to the assembler."""
        self.assembler.signal_termination()

    def handle_release(self) -> Optional[SessionOutcome]:
        """
        Called when the hotkey is released - finish the session.

        Returns:
            The session outcome, or None if no session was recording.
        """
        if self._state != SessionState.RECORDING:
            logger.debug(f"Release ignored in state {self._state.name}")
            return None

        self._state = SessionState.FINISHING
        press_duration = self._clock() - self._press_time
        try:
            self.recorder.stop_recording()
            if self.beep:
                self.beep("stop")
            return self._finish(press_duration)
        finally:
            self.assembler.reset()
            self.gate.reset()
            self._state = SessionState.IDLE

    def _finish(self, press_duration: float) -> SessionOutcome:
        verdict = self.gate.verdict(press_duration)
        if verdict == GateVerdict.TOO_SHORT:
            self._status("[Skipped] Quick press detected")
            return SessionOutcome.QUICK_PRESS
        if verdict == GateVerdict.SILENT:
            self._status("[Skipped] No speech detected")
            return SessionOutcome.SILENT

        try:
            text, is_final = self._collect_transcript()
        except EmptyResultError as e:
            logger.error(str(e))
            self._status("[Warning] No transcription received")
            self.client.report_session_failure()
            return SessionOutcome.EMPTY_RESULT

        try:
            self.output.paste(text)
        except PasteError as e:
            logger.error(f"Paste failed: {e}")
            self._status(f"[Error] Paste failed: {e}")
            return SessionOutcome.PASTE_FAILED

        self.client.report_session_success()
        session_duration = self._clock() - self._press_time
        kind = "" if is_final else " (partial)"
        self._status(f"[Output] Pasted {len(text.split())} words{kind} ({press_duration:.1f}s recording)")
        if self.on_session_complete:
            self.on_session_complete(text, session_duration)
        return SessionOutcome.PASTED

    def _collect_transcript(self) -> Tuple[str, bool]:
        """
        Terminate the service-side session and gather its transcript.

        Raises:
            EmptyResultError: If neither a final nor a partial arrived.
        """
        self.client.terminate()

        started = self._clock()
        if self.assembler.wait_for_termination(self.termination_timeout):
            logger.debug(f"Termination confirmed after {self._clock() - started:.3f}s")
        else:
            logger.info(f"Termination timeout after {self.termination_timeout:.1f}s, proceeding anyway")

        text, is_final = self.assembler.consume_transcript_with_fallback()
        if not text:
            raise EmptyResultError("No final or partial transcript received")
        return text, is_final

    def shutdown(self) -> None:
        """Stop capture and close the connection. Bounded and idempotent."""
        if self.recorder.is_recording:
            self.recorder.stop_recording()
        self.client.close()
        self.assembler.reset()
        self.gate.reset()
        self._state = SessionState.IDLE
