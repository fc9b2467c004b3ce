"""
Transcript Assembler Module
Reconciles partial and final turn messages from the streaming service
into one transcript per recording session.
"""

import logging
import threading
from enum import Enum, auto
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class AssemblerState(Enum):
    """Per-session assembler states."""
    IDLE = auto()
    ACCUMULATING = auto()
    CONSUMED = auto()


class TranscriptAssembler:
    """
    Collects turn messages for the active session.

    Final fragments are append-only and kept in arrival order. Partial
    transcripts are provisional; the best one seen (highest confidence,
    then longest) is kept as a fallback in case no final ever arrives.
    """

    def __init__(self):
        self._lock = threading.Lock()
        # Single-slot signal: set() stores at most one pending termination
        self._termination = threading.Event()
        self._state = AssemblerState.IDLE
        self._final_fragments: List[str] = []
        self._current_transcript = ""
        self._latest_partial = ""
        self._best_partial = ""
        self._best_partial_confidence = -1.0
        self._reset_count = 0

    def reset(self) -> None:
        """Discard session state and any pending termination signal."""
        with self._lock:
            self._clear_locked()
            self._reset_count += 1
        logger.debug(f"Assembler reset (#{self._reset_count})")

    def _clear_locked(self) -> None:
        self._final_fragments = []
        self._current_transcript = ""
        self._latest_partial = ""
        self._best_partial = ""
        self._best_partial_confidence = -1.0
        self._state = AssemblerState.ACCUMULATING
        self._termination.clear()

    def process_transcript(
        self,
        text: str,
        is_final: bool,
        confidence: float = 0.0,
        end_of_turn: bool = False,
        turn_order: Optional[int] = None,
    ) -> None:
        """
        Record one turn message.

        Args:
            text: Transcript text carried by the turn
            is_final: True for an authoritative (formatted) turn
            confidence: Service confidence for the turn
            end_of_turn: Service end-of-turn flag (logged only)
            turn_order: Service turn index (logged only, never used for ordering)
        """
        with self._lock:
            self._state = AssemblerState.ACCUMULATING

            if is_final:
                self._final_fragments.append(text)
                self._current_transcript = " ".join(self._final_fragments)
                logger.debug(
                    f"Final #{len(self._final_fragments)} (turn {turn_order}, "
                    f"end_of_turn={end_of_turn}): {len(text)} chars"
                )
                return

            self._latest_partial = text
            if not self._final_fragments:
                self._current_transcript = text
            if text and (
                confidence > self._best_partial_confidence
                or (confidence == self._best_partial_confidence
                    and len(text) > len(self._best_partial))
            ):
                self._best_partial = text
                self._best_partial_confidence = confidence
            logger.debug(f"Partial (confidence {confidence:.2f}): {len(text)} chars")

    def signal_termination(self) -> None:
        """Record that the service acknowledged the terminate request."""
        logger.debug("Termination signalled")
        self._termination.set()

    def wait_for_termination(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the next termination signal or the timeout.

        Args:
            timeout: Maximum seconds to wait (None waits indefinitely)

        Returns:
            True if a termination signal was consumed, False on timeout.
        """
        signalled = self._termination.wait(timeout)
        if signalled:
            self._termination.clear()
        return signalled

    def consume_transcript_with_fallback(self) -> Tuple[str, bool]:
        """
        Return the session transcript and clear it.

        The assembler stays CONSUMED until reset() or the next turn message.

        Returns:
            (text, is_final). The joined final fragments when any arrived,
            otherwise the best partial tagged is_final=False, otherwise
            ("", False).
        """
        with self._lock:
            if self._final_fragments:
                result = (" ".join(self._final_fragments), True)
            elif self._best_partial:
                logger.info(
                    f"No final transcript, falling back to best partial "
                    f"(confidence {self._best_partial_confidence:.2f})"
                )
                result = (self._best_partial, False)
            else:
                result = ("", False)
            self._clear_locked()
            self._state = AssemblerState.CONSUMED

        return result

    @property
    def state(self) -> AssemblerState:
        with self._lock:
            return self._state

    @property
    def current_transcript(self) -> str:
        """Reconciled finals if any, else the latest partial."""
        with self._lock:
            return self._current_transcript

    @property
    def final_fragments(self) -> List[str]:
        with self._lock:
            return list(self._final_fragments)

    @property
    def latest_partial(self) -> str:
        with self._lock:
            return self._latest_partial
