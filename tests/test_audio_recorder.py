"""
Tests for the AudioRecorder module.
The sounddevice input stream is always mocked.
"""

from unittest.mock import Mock, patch

import numpy as np
import pytest
import sounddevice as sd

from t2.audio_recorder import AudioRecorder
from t2.exceptions import AudioRecordingError


class TestAudioRecorderInitialization:
    """Test AudioRecorder initialization."""

    def test_init_default_params(self):
        recorder = AudioRecorder()
        assert recorder.sample_rate == 16000
        assert recorder.channels == 1
        assert recorder.frames_per_buffer == 1024
        assert recorder.stream is None
        assert not recorder.is_recording

    def test_init_custom_params(self):
        recorder = AudioRecorder(sample_rate=48000, channels=2, frames_per_buffer=512)
        assert recorder.sample_rate == 48000
        assert recorder.channels == 2
        assert recorder.frames_per_buffer == 512

    def test_duration_starts_at_zero(self):
        assert AudioRecorder().get_duration() == 0.0


class TestAudioRecorderRecordingFlow:
    """Test recording start/stop flow."""

    @patch('sounddevice.InputStream')
    def test_start_recording_creates_stream(self, mock_stream_class):
        mock_stream = Mock()
        mock_stream_class.return_value = mock_stream

        recorder = AudioRecorder(sample_rate=16000, channels=1, frames_per_buffer=1024)
        recorder.start_recording()

        call_kwargs = mock_stream_class.call_args[1]
        assert call_kwargs['samplerate'] == 16000
        assert call_kwargs['channels'] == 1
        assert call_kwargs['dtype'] == 'int16'
        assert call_kwargs['blocksize'] == 1024
        assert callable(call_kwargs['callback'])

        mock_stream.start.assert_called_once()
        assert recorder.is_recording

    @patch('sounddevice.InputStream')
    def test_start_recording_is_idempotent(self, mock_stream_class):
        recorder = AudioRecorder()
        recorder.start_recording()
        recorder.start_recording()
        mock_stream_class.assert_called_once()

    @patch('sounddevice.InputStream')
    def test_start_failure_raises_recording_error(self, mock_stream_class):
        mock_stream_class.side_effect = sd.PortAudioError("Device unavailable")

        recorder = AudioRecorder()
        with pytest.raises(AudioRecordingError):
            recorder.start_recording()
        assert not recorder.is_recording
        assert recorder.stream is None

    @patch('sounddevice.InputStream')
    def test_stream_start_failure_resets_state(self, mock_stream_class):
        mock_stream = Mock()
        mock_stream.start.side_effect = sd.PortAudioError("Invalid device")
        mock_stream_class.return_value = mock_stream

        recorder = AudioRecorder()
        with pytest.raises(AudioRecordingError):
            recorder.start_recording()
        assert not recorder.is_recording

    @patch('sounddevice.InputStream')
    def test_stop_recording_closes_stream(self, mock_stream_class):
        mock_stream = Mock()
        mock_stream_class.return_value = mock_stream

        recorder = AudioRecorder()
        recorder.start_recording()
        recorder.stop_recording()

        mock_stream.stop.assert_called_once()
        mock_stream.close.assert_called_once()
        assert recorder.stream is None
        assert not recorder.is_recording

    def test_stop_without_start(self):
        recorder = AudioRecorder()
        assert recorder.stop_recording() == 0.0

    @patch('sounddevice.InputStream')
    def test_stop_recording_twice(self, mock_stream_class):
        mock_stream = Mock()
        mock_stream_class.return_value = mock_stream

        recorder = AudioRecorder()
        recorder.start_recording()
        recorder.stop_recording()
        recorder.stop_recording()
        mock_stream.stop.assert_called_once()

    @patch('sounddevice.InputStream')
    def test_stop_tolerates_close_errors(self, mock_stream_class):
        mock_stream = Mock()
        mock_stream.stop.side_effect = sd.PortAudioError("Stream error")
        mock_stream_class.return_value = mock_stream

        recorder = AudioRecorder()
        recorder.start_recording()
        recorder.stop_recording()
        assert not recorder.is_recording


class TestAudioRecorderFrames:
    """Test frame delivery from the stream callback."""

    @patch('sounddevice.InputStream')
    def test_callback_delivers_pcm16_bytes(self, mock_stream_class):
        frames = []
        recorder = AudioRecorder(on_frame=frames.append)
        recorder.start_recording()

        block = np.array([[1], [-2], [300]], dtype=np.int16)
        recorder._audio_callback(block, 3, None, None)

        assert frames == [np.array([1, -2, 300], dtype='<i2').tobytes()]

    @patch('sounddevice.InputStream')
    def test_frames_delivered_in_capture_order(self, mock_stream_class):
        frames = []
        recorder = AudioRecorder(on_frame=frames.append)
        recorder.start_recording()

        for value in range(5):
            recorder._audio_callback(np.full((4, 1), value, dtype=np.int16), 4, None, None)

        assert [np.frombuffer(f, dtype='<i2')[0] for f in frames] == [0, 1, 2, 3, 4]

    def test_callback_ignored_when_not_recording(self):
        on_frame = Mock()
        recorder = AudioRecorder(on_frame=on_frame)
        recorder._audio_callback(np.zeros((4, 1), dtype=np.int16), 4, None, None)
        on_frame.assert_not_called()

    @patch('sounddevice.InputStream')
    def test_callback_errors_do_not_propagate(self, mock_stream_class):
        recorder = AudioRecorder(on_frame=Mock(side_effect=RuntimeError("boom")))
        recorder.start_recording()
        recorder._audio_callback(np.zeros((4, 1), dtype=np.int16), 4, None, None)

    @patch('sounddevice.InputStream')
    def test_duration_from_delivered_samples(self, mock_stream_class):
        recorder = AudioRecorder(sample_rate=16000)
        recorder.start_recording()
        for _ in range(2):
            recorder._audio_callback(np.zeros((8000, 1), dtype=np.int16), 8000, None, None)

        assert recorder.stop_recording() == 1.0

    @patch('sounddevice.InputStream')
    def test_set_frame_callback(self, mock_stream_class):
        frames = []
        recorder = AudioRecorder()
        recorder.set_frame_callback(frames.append)
        recorder.start_recording()
        recorder._audio_callback(np.zeros((2, 1), dtype=np.int16), 2, None, None)
        assert len(frames) == 1
