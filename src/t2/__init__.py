"""
T2 - Talk to Text

Hold Ctrl+Shift to dictate; the transcript is streamed from AssemblyAI
and pasted into the active application on release.
"""

__version__ = "0.1.0"

from t2.config import Config
from t2.exceptions import (
    T2Error,
    ConfigurationError,
    AudioRecordingError,
    StreamingError,
    StreamingConnectionError,
    NotConnectedError,
    TransportClosedError,
    PasteError,
    EmptyResultError,
    MetricsError,
    PlatformNotSupportedError,
)
from t2.recording_gate import GatePhase, GateVerdict, RecordingGate
from t2.streaming_client import StreamingSessionClient
from t2.transcript_assembler import AssemblerState, TranscriptAssembler

__all__ = [
    "Config",
    "T2Error",
    "ConfigurationError",
    "AudioRecordingError",
    "StreamingError",
    "StreamingConnectionError",
    "NotConnectedError",
    "TransportClosedError",
    "PasteError",
    "EmptyResultError",
    "MetricsError",
    "PlatformNotSupportedError",
    "GatePhase",
    "GateVerdict",
    "RecordingGate",
    "StreamingSessionClient",
    "AssemblerState",
    "TranscriptAssembler",
]
