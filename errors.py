"""
pitchlight - Error types

InputError             bad frame / sample data, recovered by skipping the frame
BridgeConnectionError  bridge unreachable or username rejected, fatal at startup
DispatchError          a single light update failed, logged and dropped
"""


class InputError(ValueError):
    """Malformed or empty frame, sample or spectrum data."""


class BridgeConnectionError(ConnectionError):
    """The Hue bridge could not be reached or refused the credential."""


class DispatchError(RuntimeError):
    """A light state update was rejected or could not be delivered."""

    def __init__(self, light_id: int, reason: str):
        super().__init__(f"light {light_id}: {reason}")
        self.light_id = light_id
        self.reason = reason
