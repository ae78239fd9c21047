"""
pitchlight - Hue Bridge client
Minimal Hue v1 REST client: connect, list/find lights, set light state.
Also hosts the stand-alone light shows (colour cycle, gradual change).
"""

import time
from typing import Optional

import requests

from config import BridgeConfig
from errors import BridgeConnectionError, DispatchError
from logging_utils import log_event


class HueBridge:
    def __init__(self, config: BridgeConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.connected = False
        self.bridge_config: dict = {}

    @property
    def base_url(self) -> str:
        return f"http://{self.config.host}/api/{self.config.username}"

    # ---------- Connection ----------

    def connect(self) -> dict:
        """Verify the bridge is reachable and the username is whitelisted."""
        if not self.config.username:
            raise BridgeConnectionError("no bridge username configured")

        try:
            resp = self.session.get(f"{self.base_url}/config", timeout=self.config.connect_timeout_s)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            self.connected = False
            raise BridgeConnectionError(f"bridge at {self.config.host} unreachable: {e}") from e

        error = _first_error(payload)
        if error is not None:
            self.connected = False
            raise BridgeConnectionError(f"bridge rejected username: {error.get('description', error)}")
        # Unauthorized users only get the public subset of the config
        if not isinstance(payload, dict) or "ipaddress" not in payload:
            self.connected = False
            raise BridgeConnectionError("bridge rejected username: not whitelisted")

        self.bridge_config = payload
        self.connected = True
        log_event("INFO", "HueBridge", "Connected",
                  name=payload.get("name", "?"), ip=payload.get("ipaddress"))
        return payload

    def require_connected(self) -> None:
        if not self.connected:
            raise BridgeConnectionError("not connected to a Hue bridge")

    # ---------- Lights ----------

    def get_all_lights(self) -> list[dict]:
        self.require_connected()
        try:
            resp = self.session.get(f"{self.base_url}/lights", timeout=self.config.connect_timeout_s)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise BridgeConnectionError(f"could not list lights: {e}") from e
        error = _first_error(payload)
        if error is not None:
            raise BridgeConnectionError(f"could not list lights: {error.get('description', error)}")

        lights = []
        for light_id, light in sorted(payload.items(), key=lambda item: int(item[0])):
            lights.append({"id": int(light_id), **light})
        return lights

    def get_light_by_name(self, name: str) -> Optional[dict]:
        for light in self.get_all_lights():
            if light.get("name") == name:
                return light
        log_event("WARN", "HueBridge", "No light with that name", name=name)
        return None

    def set_light_state(self, light_id: int, state: dict) -> bool:
        """PUT a (partial) state. Returns False if the bridge rejected any field.

        Raises DispatchError when the request itself fails or times out.
        """
        self.require_connected()
        url = f"{self.base_url}/lights/{light_id}/state"
        try:
            resp = self.session.put(url, json=state, timeout=self.config.request_timeout_s)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DispatchError(light_id, str(e)) from e

        error = _first_error(payload)
        if error is not None:
            log_event("WARN", "HueBridge", "Light update rejected",
                      light=light_id, error=error.get("description", error))
            return False
        return isinstance(payload, list) and len(payload) > 0

    # ---------- Light shows ----------

    def cycle_colors(self, light_id: int, delay: float = 1.0) -> None:
        """Step once through a fixed colour list."""
        colors = [
            {"hue": 0, "sat": 254, "bri": 254},
            {"hue": 21845, "sat": 254, "bri": 254},
            {"hue": 43690, "sat": 254, "bri": 254},
            {"hue": 54613, "sat": 254, "bri": 254},
            {"hue": 65535, "sat": 254, "bri": 254},
            {"hue": 43690, "sat": 254, "bri": 254},
            {"hue": 21845, "sat": 254, "bri": 254},
            {"hue": 21845, "sat": 254, "bri": 254},
        ]
        for color in colors:
            self.set_light_state(light_id, {"on": True, **color})
            time.sleep(delay)

    def gradual_change(self, light_id: int, start: dict, end: dict, steps: int, delay: float = 1.0) -> None:
        """Linearly interpolate hue/sat/bri from start to end in `steps` updates."""
        if steps < 1:
            raise ValueError("steps must be >= 1")
        keys = ("hue", "sat", "bri")
        step = {k: (end[k] - start[k]) / steps for k in keys}
        for i in range(1, steps + 1):
            state = {k: int(round(start[k] + step[k] * i)) for k in keys}
            self.set_light_state(light_id, {"on": True, **state})
            time.sleep(delay)

    def art_light_show(self, light_id: int) -> None:
        self.gradual_change(
            light_id,
            {"hue": 10000, "sat": 75, "bri": 50},
            {"hue": 43690, "sat": 254, "bri": 254},
            steps=30,
            delay=0.5,
        )


def _first_error(payload) -> Optional[dict]:
    """Return the first {"error": {...}} entry of a bridge response, if any."""
    if isinstance(payload, list):
        for entry in payload:
            if isinstance(entry, dict) and "error" in entry:
                return entry["error"]
    return None
