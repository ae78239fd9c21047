# pitchlight Configuration
# All default values and constants

from dataclasses import dataclass, field, is_dataclass
from typing import Dict, List


CURRENT_CONFIG_VERSION = 1

NOTE_NAMES = ('C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B')

# Hue wheel values (0-65535) per pitch class
DEFAULT_NOTE_HUES = {
    'C': 65535,     # Soft red
    'C#': 6000,     # Warm orange
    'D': 12000,     # Gold
    'D#': 17500,    # Light green
    'E': 22000,     # Soft green
    'F': 26500,     # Turquoise
    'F#': 31000,    # Light blue
    'G': 35500,     # Soft blue
    'G#': 40000,    # Lavender
    'A': 44500,     # Light pink
    'A#': 50000,    # Soft pink
    'B': 55000,     # Rose
}

HUE_MAX = 65535
BRIGHTNESS_CEILING = 254


@dataclass
class AudioConfig:
    """Audio capture settings"""
    sample_rate: int = 16000
    channels: int = 1                 # Mono only; the decoder reads one int16 stream
    block_size: int = 8               # Samples per delivered frame
    # Device index - None means use system default
    device_index: int | None = None


@dataclass
class AnalysisConfig:
    """Feature extraction parameters"""
    volume_history_length: int = 8    # Frames in the loudness moving average (lower = more reactive)
    skip_dc: bool = True              # Exclude the 0 Hz bin from the dominant frequency search


@dataclass
class LightingConfig:
    """Loudness/pitch to light mapping"""
    min_volume: float = 70.0          # Loudness at or below this -> min brightness
    max_volume: float = 3000.0        # Loudness at or above this -> max brightness
    min_brightness: int = 13          # 5% of 254
    max_brightness: int = BRIGHTNESS_CEILING
    primary_light_id: int = 2         # Gets brightness-only and hue updates
    secondary_light_id: int = 1       # Gets merged full-state updates
    hue_light_ids: List[int] = field(default_factory=lambda: [2])
    note_hues: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_NOTE_HUES))


@dataclass
class BridgeConfig:
    """Hue bridge connection"""
    host: str = "192.168.1.2"
    username: str = ""                # Whitelisted bridge username (API key)
    connect_timeout_s: float = 5.0
    request_timeout_s: float = 1.0    # Per light update; stale updates are dropped, not queued
    dispatch_retries: int = 0         # Extra attempts per failed update (worker thread only)
    retry_backoff_s: float = 0.1      # Sleep between attempts, multiplied by attempt number
    dry_run: bool = False             # When True, log light updates instead of sending


@dataclass
class Config:
    """Master configuration"""
    version: int = 1                  # Schema version for persisted configs
    audio: AudioConfig = field(default_factory=AudioConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    lighting: LightingConfig = field(default_factory=LightingConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)

    # Global
    log_level: str = "INFO"           # Logging level (DEBUG/INFO/WARNING/ERROR)


def apply_dict_to_dataclass(target, data) -> None:
    """Recursively apply values from a dict onto a dataclass instance.
    Unknown keys are ignored; nested dicts merge into nested dataclasses."""
    if not isinstance(data, dict):
        return

    for key, value in data.items():
        if not hasattr(target, key):
            continue

        current = getattr(target, key)

        if is_dataclass(current) and isinstance(value, dict):
            apply_dict_to_dataclass(current, value)
            continue

        setattr(target, key, value)


def migrate_config(config: Config, loaded_version) -> None:
    """Upgrade older config structures to the current schema.
    Fills defaults for missing/None fields, clamps ranges and bumps version."""
    try:
        version = int(loaded_version) if loaded_version is not None else 0
    except Exception:
        version = 0

    if version < 1:
        # Pre-1 files stored the hue table as a list ordered from C
        hues = config.lighting.note_hues
        if isinstance(hues, list) and len(hues) == len(NOTE_NAMES):
            config.lighting.note_hues = dict(zip(NOTE_NAMES, hues))

    if not isinstance(config.lighting.note_hues, dict) or not config.lighting.note_hues:
        config.lighting.note_hues = dict(DEFAULT_NOTE_HUES)
    config.lighting.note_hues = {
        str(note): max(0, min(HUE_MAX, int(hue)))
        for note, hue in config.lighting.note_hues.items()
    }

    if config.lighting.hue_light_ids is None:
        config.lighting.hue_light_ids = [config.lighting.primary_light_id]

    try:
        window = int(config.analysis.volume_history_length)
    except Exception:
        window = 8
    config.analysis.volume_history_length = max(1, window)

    try:
        max_bri = int(config.lighting.max_brightness)
    except Exception:
        max_bri = BRIGHTNESS_CEILING
    config.lighting.max_brightness = max(1, min(BRIGHTNESS_CEILING, max_bri))

    try:
        min_bri = int(config.lighting.min_brightness)
    except Exception:
        min_bri = 13
    config.lighting.min_brightness = max(0, min(config.lighting.max_brightness, min_bri))

    if config.lighting.max_volume <= config.lighting.min_volume:
        config.lighting.max_volume = config.lighting.min_volume + 1.0

    if getattr(config.bridge, 'dry_run', False) is None:
        config.bridge.dry_run = False
    if getattr(config, 'log_level', None) is None:
        config.log_level = "INFO"

    config.version = CURRENT_CONFIG_VERSION


# Default config instance
DEFAULT_CONFIG = Config()
