"""
Audio Recorder Module
Captures audio from microphone and hands fixed-size PCM16 frames to a callback.
"""

import logging
import threading
from typing import Callable, Optional

import numpy as np
import sounddevice as sd

from t2.exceptions import AudioRecordingError

logger = logging.getLogger(__name__)

FrameCallback = Callable[[bytes], None]


class AudioRecorder:
    """Streams microphone audio to a frame callback."""

    def __init__(self, sample_rate: int = 16000, channels: int = 1,
                 frames_per_buffer: int = 1024,
                 on_frame: Optional[FrameCallback] = None):
        """
        Initialize audio recorder.

        Args:
            sample_rate: Sample rate in Hz (default 16000 for the streaming API)
            channels: Number of audio channels (default 1 for mono)
            frames_per_buffer: Samples per delivered frame
            on_frame: Called with each frame as little-endian PCM16 bytes
        """
        self.sample_rate = sample_rate
        self.channels = channels
        self.frames_per_buffer = frames_per_buffer
        self.on_frame = on_frame
        self.stream: Optional[sd.InputStream] = None
        self._is_recording = False
        self._samples = 0
        self._lock = threading.Lock()

    def set_frame_callback(self, callback: Optional[FrameCallback]) -> None:
        self.on_frame = callback

    def _audio_callback(self, indata: np.ndarray, frames: int,
                        time_info, status) -> None:
        """Callback for audio stream - forwards each block as a frame."""
        if status:
            logger.debug(f"Audio callback status: {status}")

        with self._lock:
            if not self._is_recording:
                return
            self._samples += frames

        frame = indata.astype('<i2', copy=False).tobytes()
        if self.on_frame is None:
            return
        try:
            self.on_frame(frame)
        except Exception as e:
            logger.error(f"Error in frame callback: {e}")

    def start_recording(self) -> None:
        """
        Begin capturing audio from default input device.

        Raises:
            AudioRecordingError: If the input stream can't be opened.
        """
        if self._is_recording:
            return

        self._samples = 0
        try:
            self.stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype='int16',
                blocksize=self.frames_per_buffer,
                callback=self._audio_callback
            )
            with self._lock:
                self._is_recording = True
            self.stream.start()
        except (sd.PortAudioError, OSError) as e:
            with self._lock:
                self._is_recording = False
            self.stream = None
            raise AudioRecordingError(f"Failed to open microphone: {e}") from e

    def stop_recording(self) -> float:
        """
        Stop recording.

        Returns:
            Seconds of audio captured.
        """
        with self._lock:
            if not self._is_recording:
                return 0.0
            self._is_recording = False

        stream, self.stream = self.stream, None
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except sd.PortAudioError as e:
                logger.warning(f"Error closing audio stream: {e}")

        return self.get_duration()

    def get_duration(self) -> float:
        """Return captured duration in seconds."""
        return self._samples / self.sample_rate

    @property
    def is_recording(self) -> bool:
        """Whether recording is currently active."""
        return self._is_recording
