"""pitchlight console logging.

All modules log through ``log_event`` with a component tag, so a session reads as
one stream:

    [INFO][HueBridge] Connected | name=Philips hue ip=192.168.1.2
    [WARNING][FeatureStream] Frame skipped | reason=empty frame size=1
    [WARNING][NetworkEngine] Light update failed | light=2 error=timed out attempts=1

Tags in use: App, AudioEngine, Config, FeatureStream, LightMapper, HueBridge,
NetworkEngine. Per-frame feature lines are DEBUG and only built when
``is_debug_enabled()``.
"""
from __future__ import annotations

import logging
from typing import Any

_logger = logging.getLogger("pitchlight")
if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s][%(tag)s] %(message)s"))
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)


class _TagAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]):
        tag = kwargs.pop("tag", "App")
        kwargs.setdefault("extra", {})["tag"] = tag
        return msg, kwargs


_logger_adapter = _TagAdapter(_logger, {})


def _level_value(level: str | None) -> int:
    # Accepts WARN as well as WARNING; unknown names fall back to INFO
    return getattr(logging, (level or "INFO").upper(), logging.INFO)


def log_event(level: str, tag: str, message: str, **fields: Any) -> None:
    """Log `message` under `tag`, appending key=value fields when provided."""
    if fields:
        extras = " ".join(f"{k}={v}" for k, v in fields.items())
        message = f"{message} | {extras}"
    _logger_adapter.log(_level_value(level), message, tag=tag)


def set_log_level(level: str) -> None:
    """Set the pitchlight log level (DEBUG/INFO/WARNING/ERROR)."""
    _logger.setLevel(_level_value(level))


def is_debug_enabled() -> bool:
    return _logger.isEnabledFor(logging.DEBUG)
