"""
pitchlight - Feature Stream
Turns raw capture buffers into two feature events per frame:

  volume              smoothed mean absolute amplitude
  dominant_frequency  Hz of the strongest non-DC bin (0.0 for silence)

Listeners are called synchronously while the frame is being processed. A
listener that raises is logged and the remaining listeners still run.
"""

import threading
from typing import Callable, Dict, Iterable, List

import numpy as np

from config import Config
from errors import InputError
from frame_decoder import decode_frame
from frequency_utils import analyze_spectrum, extract_dominant_freq
from logging_utils import is_debug_enabled, log_event
from loudness_meter import LoudnessMeter

VOLUME = "volume"
DOMINANT_FREQUENCY = "dominant_frequency"
CHANNELS = (VOLUME, DOMINANT_FREQUENCY)

Listener = Callable[[float], None]

# Peaks below this fraction of the frame's strongest bin are FFT rounding noise
SILENCE_TOLERANCE = 1e-9


class FeatureStream:
    def __init__(self, config: Config, loudness_meter: LoudnessMeter | None = None):
        self.config = config
        self.loudness_meter = loudness_meter or LoudnessMeter(config.analysis.volume_history_length)

        self._listeners: Dict[str, List[Listener]] = {name: [] for name in CHANNELS}
        self._listeners_lock = threading.Lock()
        # One frame at a time; the loudness history is not safe to share
        self._frame_lock = threading.Lock()

        self.frames_processed = 0
        self.frames_skipped = 0
        self.listener_errors = 0

    # ---------- Subscriptions ----------

    def subscribe(self, channel: str, listener: Listener) -> None:
        if channel not in self._listeners:
            raise ValueError(f"unknown channel '{channel}', expected one of {CHANNELS}")
        with self._listeners_lock:
            self._listeners[channel].append(listener)

    def unsubscribe(self, channel: str, listener: Listener) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        if channel not in self._listeners:
            raise ValueError(f"unknown channel '{channel}', expected one of {CHANNELS}")
        with self._listeners_lock:
            try:
                self._listeners[channel].remove(listener)
            except ValueError:
                return False
        return True

    def listener_count(self, channel: str) -> int:
        with self._listeners_lock:
            return len(self._listeners.get(channel, ()))

    def _emit(self, channel: str, value: float) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners[channel])
        for listener in listeners:
            try:
                listener(value)
            except Exception as e:
                self.listener_errors += 1
                log_event("ERROR", "FeatureStream", "Listener failed", channel=channel, error=e)

    # ---------- Processing ----------

    def process_frame(self, buffer: bytes) -> bool:
        """Process one raw frame. Returns False if the frame was skipped."""
        with self._frame_lock:
            try:
                samples = decode_frame(buffer)
                dominant = self.dominant_frequency(samples)
                volume = self.loudness_meter.update(samples)
            except InputError as e:
                self.frames_skipped += 1
                log_event("WARN", "FeatureStream", "Frame skipped", reason=e, size=len(buffer))
                return False

            self.frames_processed += 1
            if is_debug_enabled():
                log_event("DEBUG", "FeatureStream", "Features",
                          dominant_hz=f"{dominant:.1f}", volume=f"{volume:.1f}")

            self._emit(DOMINANT_FREQUENCY, dominant)
            self._emit(VOLUME, volume)
            return True

    def dominant_frequency(self, samples: np.ndarray) -> float:
        """Dominant frequency of a decoded frame; 0.0 when the frame is silent."""
        frequencies, magnitudes = analyze_spectrum(samples, self.config.audio.sample_rate)
        # Measured before DC is dropped so a constant offset does not leave only noise to pick from
        noise_floor = SILENCE_TOLERANCE * max(1.0, float(magnitudes.max()))
        if self.config.analysis.skip_dc and len(magnitudes) > 1:
            frequencies = frequencies[1:]
            magnitudes = magnitudes[1:]
        if magnitudes.max() <= noise_floor:
            return 0.0
        return extract_dominant_freq(frequencies, magnitudes)

    def consume(self, frames: Iterable[bytes], stop_event: threading.Event | None = None) -> int:
        """Pull frames from an iterable source in order until it ends or stop_event is set.
        Returns the number of frames processed."""
        processed = 0
        for buffer in frames:
            if stop_event is not None and stop_event.is_set():
                break
            if self.process_frame(buffer):
                processed += 1
        return processed

    def stats(self) -> dict:
        return {
            "frames_processed": self.frames_processed,
            "frames_skipped": self.frames_skipped,
            "listener_errors": self.listener_errors,
            "volume_average": self.loudness_meter.average(),
        }
