from typing import Sequence

import numpy as np

from errors import InputError


def analyze_spectrum(samples: np.ndarray, sample_rate: int) -> tuple[np.ndarray, np.ndarray]:
    """Run a DFT over one sample window.

    Returns (frequencies, magnitudes) for the non-negative bins 0..L//2.
    Bin k sits at k * sample_rate / L. Any window length is accepted.
    """
    samples = np.asarray(samples, dtype=np.float64)
    n = len(samples)
    if n == 0:
        raise InputError("cannot analyze an empty sample window")
    if sample_rate <= 0:
        raise InputError(f"sample rate must be positive, got {sample_rate}")

    magnitudes = np.abs(np.fft.rfft(samples))
    frequencies = np.arange(len(magnitudes)) * (sample_rate / n)
    return frequencies, magnitudes


def extract_dominant_freq(
    frequencies: Sequence[float] | np.ndarray,
    magnitudes: Sequence[float] | np.ndarray,
) -> float:
    """Frequency of the strongest bin. Exact ties go to the lowest bin."""
    if len(frequencies) == 0 or len(magnitudes) == 0:
        raise InputError("spectrum is empty")
    if len(frequencies) != len(magnitudes):
        raise InputError(
            f"spectrum length mismatch: {len(frequencies)} frequencies, {len(magnitudes)} magnitudes"
        )

    # argmax returns the first maximum
    peak_bin = int(np.argmax(np.asarray(magnitudes)))
    return float(frequencies[peak_bin])


def bin_width(sample_rate: int, window_length: int) -> float:
    """Frequency spacing between adjacent bins."""
    if window_length <= 0:
        raise InputError("window length must be positive")
    return sample_rate / window_length
