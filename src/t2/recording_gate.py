"""
Recording Gate Module
Decides from press duration and audio loudness whether a recording
session is worth sending for transcription.
"""

import logging
import threading
from enum import Enum, auto
from typing import Union

import numpy as np

logger = logging.getLogger(__name__)

# RMS below this is treated as silence (PCM16 amplitude units)
DEFAULT_SILENCE_THRESHOLD = 150.0

# ~500ms of silence at 1024-sample frames
DEFAULT_MAX_SILENCE_CHUNKS = 20

# Presses shorter than this are treated as accidental taps (seconds)
DEFAULT_QUICK_PRESS_THRESHOLD = 0.8


class GatePhase(Enum):
    """Speech detection phase for the current session."""
    AWAITING_SPEECH = auto()
    SPEECH_CONFIRMED = auto()


class GateVerdict(Enum):
    """Release-time decision for a session."""
    TOO_SHORT = auto()
    SILENT = auto()
    PROCEED = auto()


def calculate_rms(frame: Union[bytes, np.ndarray]) -> float:
    """
    Compute the root-mean-square amplitude of a PCM16 frame.

    Args:
        frame: Little-endian PCM16 bytes, or an array of samples.

    Returns:
        RMS amplitude (0.0 for an empty frame).
    """
    if isinstance(frame, (bytes, bytearray, memoryview)):
        samples = np.frombuffer(frame, dtype='<i2')
    else:
        samples = np.asarray(frame).reshape(-1)

    if samples.size == 0:
        return 0.0

    # float64 so squares of int16 samples don't overflow
    samples = samples.astype(np.float64)
    return float(np.sqrt(np.mean(samples * samples)))


class RecordingGate:
    """Tracks loudness and silence for one press/release session."""

    def __init__(
        self,
        silence_threshold: float = DEFAULT_SILENCE_THRESHOLD,
        max_silence_chunks: int = DEFAULT_MAX_SILENCE_CHUNKS,
        quick_press_threshold: float = DEFAULT_QUICK_PRESS_THRESHOLD,
    ):
        """
        Initialize the gate.

        Args:
            silence_threshold: RMS level separating silence from speech
            max_silence_chunks: Consecutive silent frames before the session
                is flagged as prolonged silence
            quick_press_threshold: Minimum press duration in seconds
        """
        self.silence_threshold = silence_threshold
        self.max_silence_chunks = max_silence_chunks
        self.quick_press_threshold = quick_press_threshold

        self._lock = threading.Lock()
        self._max_rms = 0.0
        self._silent_chunks = 0
        self._phase = GatePhase.AWAITING_SPEECH
        self._prolonged_silence = False
        self._frame_count = 0

    def reset(self) -> None:
        """Clear all per-session state."""
        with self._lock:
            self._max_rms = 0.0
            self._silent_chunks = 0
            self._phase = GatePhase.AWAITING_SPEECH
            self._prolonged_silence = False
            self._frame_count = 0

    def on_frame(self, frame: Union[bytes, np.ndarray]) -> float:
        """
        Update session state from one captured frame.

        Args:
            frame: Raw PCM16 audio frame

        Returns:
            The frame's RMS loudness.
        """
        rms = calculate_rms(frame)

        with self._lock:
            self._frame_count += 1
            if rms > self._max_rms:
                self._max_rms = rms

            if rms < self.silence_threshold:
                self._silent_chunks += 1
            else:
                self._silent_chunks = 0
                if self._phase == GatePhase.AWAITING_SPEECH:
                    self._phase = GatePhase.SPEECH_CONFIRMED
                    logger.debug(f"Speech confirmed at frame {self._frame_count} (RMS {rms:.1f})")

            if (self._phase == GatePhase.AWAITING_SPEECH
                    and self._silent_chunks >= self.max_silence_chunks
                    and not self._prolonged_silence):
                self._prolonged_silence = True
                logger.debug(
                    f"Prolonged silence after {self._silent_chunks} frames, "
                    "pausing audio forwarding"
                )

        return rms

    def should_forward_frame(self) -> bool:
        """Whether the most recent frame should be sent to the service."""
        with self._lock:
            return not (self._phase == GatePhase.AWAITING_SPEECH and self._prolonged_silence)

    def verdict(self, press_duration: float) -> GateVerdict:
        """
        Decide what to do with the session at release.

        Args:
            press_duration: Seconds between press and release

        Returns:
            TOO_SHORT for accidental taps, SILENT when no frame reached the
            silence threshold, PROCEED otherwise.
        """
        with self._lock:
            max_rms = self._max_rms
            prolonged = self._prolonged_silence

        if press_duration < self.quick_press_threshold:
            logger.info(
                f"Quick press ({press_duration:.2f}s < {self.quick_press_threshold:.2f}s)"
            )
            return GateVerdict.TOO_SHORT

        if max_rms < self.silence_threshold:
            logger.info(
                f"Silent session (max RMS {max_rms:.1f} < {self.silence_threshold:.1f}, "
                f"prolonged silence: {prolonged})"
            )
            return GateVerdict.SILENT

        return GateVerdict.PROCEED

    @property
    def max_rms(self) -> float:
        """Loudest frame RMS observed this session."""
        with self._lock:
            return self._max_rms

    @property
    def silent_chunks(self) -> int:
        """Current run of consecutive silent frames."""
        with self._lock:
            return self._silent_chunks

    @property
    def phase(self) -> GatePhase:
        """Current speech detection phase."""
        with self._lock:
            return self._phase

    @property
    def prolonged_silence(self) -> bool:
        """Whether prolonged silence was seen before any speech."""
        with self._lock:
            return self._prolonged_silence
