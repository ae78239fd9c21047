from typing import Callable, Optional

from config import Config
from hue_bridge import HueBridge
from network_engine import NetworkEngine


def connect_bridge(
    config: Config,
    *,
    bridge_factory: Callable[..., HueBridge] = HueBridge,
) -> HueBridge:
    """Create a bridge client and confirm the connection.
    Raises BridgeConnectionError; callers must not start audio without it."""
    bridge = bridge_factory(config.bridge)
    bridge.connect()
    return bridge


def ensure_network_engine(
    existing_engine: Optional[NetworkEngine],
    config: Config,
    bridge,
    status_callback=None,
    *,
    dry_run_enabled: Optional[bool] = None,
    force_new: bool = False,
    engine_factory: Callable[..., NetworkEngine] = NetworkEngine,
) -> NetworkEngine:
    """Create/start a network engine if needed and apply dry-run if provided."""
    engine = None if force_new else existing_engine

    if engine is None:
        engine = engine_factory(config, bridge, status_callback)
        if dry_run_enabled is not None:
            engine.set_dry_run(dry_run_enabled)
        engine.start()
        return engine

    if dry_run_enabled is not None:
        engine.set_dry_run(dry_run_enabled)
    return engine


def shutdown_runtime(audio_engine, network_engine) -> None:
    """Stop capture first so no new commands arrive, then flush and stop dispatch."""
    if audio_engine:
        audio_engine.stop()
    if network_engine:
        network_engine.stop()
