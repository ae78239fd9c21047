"""
Equal-tempered pitch mapping against A4 = 440 Hz.

Frequencies that cannot carry a pitch (<= 0, NaN, inf; e.g. from a silent
frame) map to NO_PITCH instead of raising.
"""

import math
from typing import Optional

from config import NOTE_NAMES

A4_FREQUENCY = 440.0
A4_MIDI = 69

NO_PITCH = None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def frequency_to_note(frequency: float) -> Optional[tuple[str, int]]:
    """Nearest (pitch class, octave) for a frequency, or NO_PITCH."""
    if frequency is None or not math.isfinite(frequency) or frequency <= 0:
        return NO_PITCH

    offset = _round_half_up(12 * math.log2(frequency / A4_FREQUENCY))
    midi = A4_MIDI + offset
    return NOTE_NAMES[midi % 12], midi // 12 - 1


def classify_pitch(frequency: float) -> Optional[str]:
    """Nearest pitch class name with the octave discarded, or NO_PITCH."""
    note = frequency_to_note(frequency)
    if note is NO_PITCH:
        return NO_PITCH
    return note[0]
