from collections import deque
from typing import Deque

import numpy as np

from errors import InputError


def mean_absolute_amplitude(samples: np.ndarray) -> float:
    """Instantaneous loudness: mean |sample| over the frame."""
    samples = np.asarray(samples)
    if samples.size == 0:
        raise InputError("cannot measure loudness of an empty frame")
    # int16 abs(-32768) overflows; widen first
    return float(np.mean(np.abs(samples.astype(np.int64))))


class LoudnessMeter:
    """
    Smoothed loudness over the last `window` frames.

    Owns the volume history. A smaller window reacts faster but jitters more.
    """

    def __init__(self, window: int = 8):
        if window < 1:
            raise ValueError(f"loudness window must be >= 1, got {window}")
        self.window = window
        self.history: Deque[float] = deque(maxlen=window)

    def update(self, samples: np.ndarray) -> float:
        """Measure a frame, push it into the history and return the new average."""
        return self.push(mean_absolute_amplitude(samples))

    def push(self, loudness: float) -> float:
        self.history.append(float(loudness))
        return self.average()

    def average(self) -> float:
        if not self.history:
            return 0.0
        return sum(self.history) / len(self.history)

    def reset(self) -> None:
        self.history.clear()
