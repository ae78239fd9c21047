"""
pitchlight - Light Mapper
Converts feature events into Hue light commands.

  volume              -> brightness on the primary light, merged full state on the secondary
  dominant_frequency  -> pitch class -> hue on the hue lights

The mapper keeps the last commanded state per light so a brightness-only
change never resets a light's hue or on/off state.
"""

import math
import threading
from dataclasses import asdict, dataclass
from typing import Callable, Dict, Optional

from config import Config, LightingConfig
from feature_stream import DOMINANT_FREQUENCY, VOLUME
from logging_utils import is_debug_enabled, log_event
from network_engine import LightCommand
from pitch_classifier import NO_PITCH, classify_pitch


@dataclass
class LightState:
    """Last commanded state of one light"""
    on: bool = True
    hue: int = 0
    bri: int = 0


def volume_to_brightness(volume: float, lighting: LightingConfig) -> int:
    """Clamp loudness to [min_volume, max_volume] and rescale linearly to brightness."""
    volume_range = lighting.max_volume - lighting.min_volume
    brightness_range = lighting.max_brightness - lighting.min_brightness

    normalized = (volume - lighting.min_volume) / volume_range
    normalized = min(max(normalized, 0.0), 1.0)

    return int(math.floor(normalized * brightness_range + lighting.min_brightness + 0.5))


def pitch_to_hue(pitch_class: Optional[str], lighting: LightingConfig) -> Optional[int]:
    """Hue for a pitch class, or None when the pitch is unknown."""
    if pitch_class is NO_PITCH:
        return None
    return lighting.note_hues.get(pitch_class)


class LightMapper:
    def __init__(self, config: Config, dispatch: Callable[[LightCommand], None]):
        self.config = config
        self.dispatch = dispatch
        self._states: Dict[int, LightState] = {}
        self._lock = threading.Lock()

    def last_state(self, light_id: int) -> LightState:
        """Copy of the retained state for a light (default if never commanded)."""
        with self._lock:
            state = self._states.get(light_id, LightState())
            return LightState(**asdict(state))

    def _retained(self, light_id: int) -> LightState:
        state = self._states.get(light_id)
        if state is None:
            state = self._states[light_id] = LightState()
        return state

    def handle_volume(self, volume: float) -> int:
        """Volume event handler. Returns the brightness that was commanded."""
        lighting = self.config.lighting
        brightness = volume_to_brightness(volume, lighting)

        with self._lock:
            primary = self._retained(lighting.primary_light_id)
            primary.on = True
            primary.bri = brightness
            brightness_only = LightCommand(lighting.primary_light_id, {"on": True, "bri": brightness})

            # The secondary gets a full state so its retained hue/on never regress
            secondary = self._retained(lighting.secondary_light_id)
            secondary.bri = brightness
            full_state = LightCommand(lighting.secondary_light_id, asdict(secondary))

        self.dispatch(brightness_only)
        self.dispatch(full_state)
        return brightness

    def handle_dominant_frequency(self, frequency: float) -> Optional[int]:
        """Dominant frequency event handler. Returns the hue, or None when nothing was sent."""
        lighting = self.config.lighting
        note = classify_pitch(frequency)
        hue = pitch_to_hue(note, lighting)

        if is_debug_enabled():
            log_event("DEBUG", "LightMapper", "Dominant frequency",
                      hz=f"{frequency:.1f}", note=note, hue=hue)
        if hue is None:
            return None

        commands = []
        with self._lock:
            for light_id in lighting.hue_light_ids:
                state = self._retained(light_id)
                state.on = True
                state.hue = hue
                commands.append(LightCommand(light_id, {"on": True, "hue": hue}))

        for cmd in commands:
            self.dispatch(cmd)
        return hue

    def attach(self, feature_stream) -> None:
        """Subscribe both handlers to a FeatureStream."""
        feature_stream.subscribe(VOLUME, self.handle_volume)
        feature_stream.subscribe(DOMINANT_FREQUENCY, self.handle_dominant_frequency)

    def detach(self, feature_stream) -> None:
        feature_stream.unsubscribe(VOLUME, self.handle_volume)
        feature_stream.unsubscribe(DOMINANT_FREQUENCY, self.handle_dominant_frequency)
