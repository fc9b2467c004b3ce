"""
Audible start/stop feedback.
"""

import logging

import numpy as np
import sounddevice as sd

logger = logging.getLogger(__name__)

BEEP_SAMPLE_RATE = 44100
BEEP_AMPLITUDE = 0.2

# kind -> (frequency Hz, duration s)
BEEP_TONES = {
    "start": (880.0, 0.08),
    "stop": (1760.0, 0.05),
}


def make_tone(frequency: float, duration: float,
              sample_rate: int = BEEP_SAMPLE_RATE) -> np.ndarray:
    """Generate a sine tone with a short fade to avoid clicks."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    tone = BEEP_AMPLITUDE * np.sin(2 * np.pi * frequency * t)
    fade = min(len(tone) // 4, int(sample_rate * 0.005))
    if fade > 0:
        ramp = np.linspace(0.0, 1.0, fade)
        tone[:fade] *= ramp
        tone[-fade:] *= ramp[::-1]
    return tone.astype(np.float32)


def play_beep(kind: str) -> None:
    """
    Play the start or stop beep without blocking.

    Args:
        kind: "start" or "stop"
    """
    if kind not in BEEP_TONES:
        raise ValueError(f"Unknown beep kind: {kind}")

    frequency, duration = BEEP_TONES[kind]
    try:
        sd.play(make_tone(frequency, duration), BEEP_SAMPLE_RATE, blocking=False)
    except Exception as e:
        # e.g. no output device
        logger.debug(f"Beep failed: {e}")
