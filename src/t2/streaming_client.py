"""
Streaming Client Module
Maintains the WebSocket connection to the AssemblyAI streaming API,
forwards audio frames and dispatches inbound turn messages.
"""

import json
import logging
import threading
import time
from typing import Callable, Optional
from urllib.parse import urlencode

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException
from websockets.sync.client import ClientConnection, connect

from t2.exceptions import NotConnectedError, StreamingConnectionError, TransportClosedError

logger = logging.getLogger(__name__)

STREAMING_URL = "wss://streaming.assemblyai.com/v3/ws"

MAX_HEALTH = 100
HEALTH_SUCCESS_BONUS = 10
HEALTH_FAILURE_PENALTY = 15

# Refresh policy
CRITICAL_HEALTH = 20
MAX_CONSECUTIVE_FAILURES = 3
STALE_CONNECTION_AGE = 10 * 60  # seconds
STALE_CONNECTION_HEALTH = 60

TranscriptCallback = Callable[[str, bool, bool, float], None]


class StreamingSessionClient:
    """
    Client for one long-lived streaming transcription connection.

    All mutation of the connection handle and health counters happens
    under a single lock. Inbound messages are handled on a background
    receive thread started by connect().
    """

    def __init__(
        self,
        on_transcript: Optional[TranscriptCallback] = None,
        on_termination: Optional[Callable[[], None]] = None,
        on_connection: Optional[Callable[[bool], None]] = None,
        url: str = STREAMING_URL,
        sample_rate: int = 16000,
        format_turns: bool = True,
        open_timeout: float = 10.0,
        close_timeout: float = 2.0,
    ):
        """
        Initialize the client. No network activity happens here.

        Args:
            on_transcript: Called with (text, is_final, end_of_turn, confidence)
                for every non-empty Turn message
            on_termination: Called when the service confirms a Terminate
            on_connection: Called with True after connect, False after close
            url: Streaming endpoint
            sample_rate: Sample rate of the PCM16 audio that will be sent
            format_turns: Ask the service to send formatted (final) turns
            open_timeout: Handshake timeout in seconds
            close_timeout: Bound on the closing handshake in seconds
        """
        self.url = url
        self.sample_rate = sample_rate
        self.format_turns = format_turns
        self.open_timeout = open_timeout
        self.close_timeout = close_timeout

        self._on_transcript = on_transcript
        self._on_termination = on_termination
        self._on_connection = on_connection

        self._lock = threading.Lock()
        self._ws: Optional[ClientConnection] = None
        self._receiver: Optional[threading.Thread] = None

        self._health = MAX_HEALTH
        self._connected_at = 0.0
        self._session_count = 0
        self._failed_sessions = 0
        self._chunk_count = 0
        self._last_chunk_size = 0

    def set_transcript_callback(self, callback: Optional[TranscriptCallback]) -> None:
        self._on_transcript = callback

    def set_termination_callback(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_termination = callback

    def _build_url(self) -> str:
        query = urlencode({
            "sample_rate": str(self.sample_rate),
            "format_turns": str(self.format_turns).lower(),
        })
        return f"{self.url}?{query}"

    def connect(self, api_key: str) -> None:
        """
        Open a new connection and start the receive loop.

        Args:
            api_key: AssemblyAI API key, sent as the raw Authorization header

        Raises:
            StreamingConnectionError: If the handshake fails for any reason.
        """
        if self._ws is not None or self._receiver is not None:
            logger.info("Closing existing connection before reconnecting")
            self._release_connection()

        url = self._build_url()
        logger.info(f"Connecting to {url}")

        try:
            ws = connect(
                url,
                additional_headers={"Authorization": api_key},
                open_timeout=self.open_timeout,
                close_timeout=self.close_timeout,
            )
        except (OSError, WebSocketException) as e:
            logger.error(f"Connection failed: {e}")
            raise StreamingConnectionError(f"Error connecting to streaming service: {e}") from e

        with self._lock:
            self._ws = ws
            self._connected_at = time.monotonic()
            self._health = MAX_HEALTH
            self._session_count = 0
            self._failed_sessions = 0
            self._chunk_count = 0
            self._last_chunk_size = 0

        self._receiver = threading.Thread(
            target=self._receive_loop, args=(ws,), name="t2-receiver", daemon=True
        )
        self._receiver.start()
        logger.info("Connected to streaming service")

        if self._on_connection:
            self._on_connection(True)

    def send_audio(self, frame: bytes) -> None:
        """
        Send one raw PCM16 frame as a binary message.

        Raises:
            NotConnectedError: If no connection is open.
            TransportClosedError: If the connection turned out to be closed;
                the client is left disconnected.
        """
        with self._lock:
            if self._ws is None:
                raise NotConnectedError("Streaming connection not established")

            self._chunk_count += 1
            if self._chunk_count % 50 == 1 or len(frame) != self._last_chunk_size:
                logger.debug(f"Sending chunk #{self._chunk_count}, size: {len(frame)} bytes")
                self._last_chunk_size = len(frame)

            try:
                self._ws.send(frame)
            except (ConnectionClosed, OSError) as e:
                logger.warning(f"Connection closed while sending audio: {e}")
                self._discard_locked()
                raise TransportClosedError(f"Streaming connection closed: {e}") from e

    def terminate(self) -> None:
        """Ask the service to finish the session. Does not wait for the reply."""
        with self._lock:
            if self._ws is None:
                logger.warning("Terminate requested with no open connection")
                return
            try:
                self._ws.send(json.dumps({"type": "Terminate"}))
                logger.debug("Termination message sent")
            except (ConnectionClosed, OSError) as e:
                logger.error(f"Failed to send termination message: {e}")

    def close(self) -> None:
        """Send a close frame (best effort) and drop the connection. Always safe."""
        self._release_connection()
        if self._on_connection:
            self._on_connection(False)

    def _release_connection(self) -> None:
        """Close the handle and wait (bounded) for its receive thread to exit."""
        with self._lock:
            ws = self._ws
            self._ws = None
            self._chunk_count = 0
            self._last_chunk_size = 0

        if ws is not None:
            try:
                ws.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing connection: {e}")
            logger.info("Connection closed")

        receiver = self._receiver
        if receiver is not None and receiver is not threading.current_thread():
            receiver.join(timeout=self.close_timeout)
        self._receiver = None

    def is_connected(self) -> bool:
        """
        Probe the connection and repair it if dead.

        This is not a pure getter: it sends a ping, and if that fails the
        dead handle is closed and discarded and health drops to zero.

        Returns:
            True if the connection accepted the ping.
        """
        with self._lock:
            if self._ws is None:
                return False
            try:
                self._ws.ping()
            except (ConnectionClosed, OSError, RuntimeError) as e:
                logger.info(f"Connection check failed, discarding handle: {e}")
                self._discard_locked()
                self._health = 0
                return False
            return True

    def _discard_locked(self) -> None:
        ws = self._ws
        self._ws = None
        if ws is not None:
            try:
                ws.close()
            except Exception as e:
                logger.debug(f"Ignoring error while discarding connection: {e}")

    def connection_needs_refresh(self) -> bool:
        """Whether the connection is degraded enough to warrant a reconnect."""
        with self._lock:
            if self._health < CRITICAL_HEALTH:
                return True
            if self._failed_sessions >= MAX_CONSECUTIVE_FAILURES:
                return True
            age = time.monotonic() - self._connected_at
            return age > STALE_CONNECTION_AGE and self._health < STALE_CONNECTION_HEALTH

    def report_session_success(self) -> None:
        with self._lock:
            self._session_count += 1
            self._failed_sessions = 0
            self._health = min(MAX_HEALTH, self._health + HEALTH_SUCCESS_BONUS)

    def report_session_failure(self) -> None:
        with self._lock:
            self._failed_sessions += 1
            self._health = max(0, self._health - HEALTH_FAILURE_PENALTY)
            logger.debug(
                f"Session failure reported: health={self._health}, "
                f"consecutive failures={self._failed_sessions}"
            )

    @property
    def health(self) -> int:
        with self._lock:
            return self._health

    @property
    def consecutive_failures(self) -> int:
        with self._lock:
            return self._failed_sessions

    @property
    def session_count(self) -> int:
        with self._lock:
            return self._session_count

    def _receive_loop(self, ws: ClientConnection) -> None:
        """Read inbound messages until the connection closes."""
        logger.debug("Receive loop started")
        while True:
            try:
                message = ws.recv()
            except ConnectionClosedOK:
                logger.debug("Receive loop exiting: connection closed normally")
                return
            except ConnectionClosed as e:
                logger.debug(f"Receive loop exiting: connection closed ({e})")
                return
            except (OSError, RuntimeError) as e:
                # Raised when close() tears the socket down under us
                logger.debug(f"Receive loop exiting: {e}")
                return

            if self._ws is not ws:
                logger.debug("Receive loop exiting: connection was replaced")
                return

            if isinstance(message, (bytes, bytearray)):
                logger.warning(f"Ignoring unexpected binary message ({len(message)} bytes)")
                continue

            self._handle_message(message)

    def _handle_message(self, message: str) -> None:
        try:
            data = json.loads(message)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse message: {e}")
            return

        if not isinstance(data, dict) or not isinstance(data.get("type"), str):
            logger.warning("Message without type field")
            return

        msg_type = data["type"]
        if msg_type == "Begin":
            logger.info(f"Session began: {data.get('id', '(no id)')}")
        elif msg_type == "Turn":
            transcript = data.get("transcript")
            if not isinstance(transcript, str) or not transcript:
                return
            is_final = data.get("turn_is_formatted") is True
            end_of_turn = data.get("end_of_turn") is True
            confidence = data.get("end_of_turn_confidence")
            if not isinstance(confidence, (int, float)) or isinstance(confidence, bool):
                confidence = 0.0
            logger.debug(
                f"Transcript ({'final' if is_final else 'partial'}): {len(transcript)} chars, "
                f"end_of_turn={end_of_turn}, confidence={confidence:.2f}"
            )
            if self._on_transcript:
                self._on_transcript(transcript, is_final, end_of_turn, float(confidence))
        elif msg_type == "Termination":
            logger.debug("Session termination received")
            if self._on_termination:
                self._on_termination()
        else:
            logger.debug(f"Unknown message type: {msg_type}")
