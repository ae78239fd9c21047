"""
pitchlight - Audio Engine
Captures the microphone with sounddevice and pushes raw int16 buffers into a
FeatureStream, one callback at a time.
"""

import threading
import time
from typing import Callable, Optional

from config import Config
from logging_utils import log_event

try:
    import sounddevice as sd
except OSError as e:
    # PortAudio shared library missing
    sd = None
    _SD_IMPORT_ERROR = e
else:
    _SD_IMPORT_ERROR = None


class AudioEngine:
    """
    Engine 1: The Ears
    `on_frame` receives each raw buffer and may raise to abort capture.
    """

    def __init__(self, config: Config, on_frame: Callable[[bytes], object],
                 on_fatal: Optional[Callable[[BaseException], None]] = None):
        if config.audio.channels != 1:
            raise ValueError("AudioEngine captures mono only (audio.channels must be 1).")

        self.config = config
        self.on_frame = on_frame
        self.on_fatal = on_fatal

        self.stream = None
        self.running = False
        self.stopped_event = threading.Event()
        self.last_error: Optional[BaseException] = None

        self._started_at = 0.0
        self._callbacks = 0
        self._status_warnings = 0

    def start(self) -> None:
        """Open the input stream and start delivering frames"""
        if self.running:
            return
        if sd is None:
            raise RuntimeError(f"sounddevice is not available: {_SD_IMPORT_ERROR}")

        audio = self.config.audio
        self.stopped_event.clear()
        self.last_error = None
        self._callbacks = 0
        self._status_warnings = 0

        self.stream = sd.RawInputStream(
            samplerate=audio.sample_rate,
            blocksize=audio.block_size,
            device=audio.device_index,
            channels=audio.channels,
            dtype='int16',
            callback=self._audio_callback,
            finished_callback=self._on_finished,
        )
        self.stream.start()
        self.running = True
        self._started_at = time.time()
        log_event("INFO", "AudioEngine", "Microphone stream started",
                  sample_rate=audio.sample_rate, block=audio.block_size, device=audio.device_index)

    def stop(self) -> None:
        """Stop audio capture"""
        self.running = False
        if self.stream is not None:
            try:
                self.stream.stop()
                self.stream.close()
            finally:
                self.stream = None
        self._log_shutdown_summary()

    def _audio_callback(self, indata, frames, time_info, status) -> None:
        """sounddevice callback - forward the raw buffer"""
        if status:
            self._status_warnings += 1
            log_event("WARN", "AudioEngine", "Stream status", status=status)
        if not self.running:
            return

        self._callbacks += 1
        try:
            self.on_frame(bytes(indata))
        except Exception as e:
            self.last_error = e
            log_event("ERROR", "AudioEngine", "Frame processing failed, stopping capture", error=e)
            if self.on_fatal:
                self.on_fatal(e)
            raise sd.CallbackAbort from e

    def _on_finished(self) -> None:
        self.running = False
        self.stopped_event.set()
        log_event("INFO", "AudioEngine", "Microphone stream stopped")

    def _log_shutdown_summary(self) -> None:
        if self._callbacks == 0:
            return
        seconds = max(0.0, time.time() - self._started_at)
        log_event(
            "INFO",
            "AudioEngine",
            "Session summary",
            seconds=f"{seconds:.1f}",
            callbacks=self._callbacks,
            status_warnings=self._status_warnings,
        )


def list_devices() -> list[dict]:
    """Input-capable audio devices as dicts."""
    if sd is None:
        raise RuntimeError(f"sounddevice is not available: {_SD_IMPORT_ERROR}")
    devices = []
    for index, dev in enumerate(sd.query_devices()):
        if dev['max_input_channels'] <= 0:
            continue
        devices.append({
            'index': index,
            'name': dev['name'],
            'inputs': dev['max_input_channels'],
            'default_samplerate': dev['default_samplerate'],
        })
    return devices
