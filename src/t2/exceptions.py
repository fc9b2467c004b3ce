"""
Custom Exceptions for T2 application.

This module defines the exception hierarchy used throughout the application.
"""


class T2Error(Exception):
    """Base exception for all T2 errors."""
    pass


class ConfigurationError(T2Error):
    """Error in application configuration."""
    pass


class AudioRecordingError(T2Error):
    """Error recording audio from microphone."""
    pass


class StreamingError(T2Error):
    """Error talking to the streaming transcription service."""
    pass


class StreamingConnectionError(StreamingError):
    """Handshake with the streaming service failed (network, auth, bad endpoint)."""
    pass


class NotConnectedError(StreamingError):
    """Attempted to send audio with no open connection."""
    pass


class TransportClosedError(NotConnectedError):
    """The connection was found closed or reset; the stale handle was discarded."""
    pass


class PasteError(T2Error):
    """Error pasting text into the active application."""
    pass


class EmptyResultError(T2Error):
    """No final or partial transcript was received for a session."""
    pass


class MetricsError(T2Error):
    """Error reading or writing usage metrics."""
    pass


class PlatformNotSupportedError(T2Error):
    """Error when running on an unsupported platform."""
    pass
