#!/usr/bin/env python3
"""
pitchlight - Microphone to Hue

Listens to the microphone, tracks loudness and dominant pitch, and drives a
Hue light's brightness and colour from them.
"""

import argparse
import sys
import threading

from audio_engine import AudioEngine, list_devices
from config import Config
from config_persistence import load_config, save_config
from errors import BridgeConnectionError
from feature_stream import FeatureStream
from hue_bridge import HueBridge
from light_mapper import LightMapper
from logging_utils import log_event, set_log_level
from network_lifecycle import connect_bridge, ensure_network_engine, shutdown_runtime


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drive a Hue light from live microphone loudness and pitch")
    parser.add_argument("--host", help="Hue bridge IP address (overrides saved config)")
    parser.add_argument("--username", help="Whitelisted Hue bridge username (overrides saved config)")
    parser.add_argument("--log-level", help="DEBUG/INFO/WARNING/ERROR (overrides saved config)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Log light updates instead of sending them (no bridge needed)")
    parser.add_argument("--list-devices", action="store_true", help="List audio input devices and exit")
    parser.add_argument("--list-lights", action="store_true", help="List the bridge's lights and exit")
    parser.add_argument("--show", choices=("cycle", "art"),
                        help="Run a light show on the primary light and exit")
    parser.add_argument("--save-config", action="store_true",
                        help="Persist the effective config (including overrides) before running")
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    if args.host:
        config.bridge.host = args.host
    if args.username:
        config.bridge.username = args.username
    if args.log_level:
        config.log_level = args.log_level
    if args.dry_run:
        config.bridge.dry_run = True
    return config


def run_pipeline(config: Config, bridge: HueBridge) -> int:
    network_engine = ensure_network_engine(None, config, bridge, dry_run_enabled=config.bridge.dry_run)
    feature_stream = FeatureStream(config)
    mapper = LightMapper(config, network_engine.submit)
    mapper.attach(feature_stream)

    fatal = threading.Event()
    audio_engine = AudioEngine(config, feature_stream.process_frame, on_fatal=lambda e: fatal.set())

    try:
        audio_engine.start()
    except Exception as e:
        log_event("ERROR", "App", "Could not start microphone", error=e)
        shutdown_runtime(None, network_engine)
        return 1

    log_event("INFO", "App", "Running (Ctrl+C to stop)")
    try:
        while not fatal.is_set() and not audio_engine.stopped_event.is_set():
            audio_engine.stopped_event.wait(0.2)
    except KeyboardInterrupt:
        log_event("INFO", "App", "Shutting down...")
    finally:
        shutdown_runtime(audio_engine, network_engine)
        log_event("INFO", "App", "Session summary",
                  **feature_stream.stats(), sent=network_engine.sent, failed=network_engine.failed)

    return 1 if fatal.is_set() else 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = apply_overrides(load_config(), args)
    set_log_level(config.log_level)

    if args.save_config:
        save_config(config)

    if args.list_devices:
        for d in list_devices():
            log_event("INFO", "AudioEngine", "Device", index=d['index'], name=d['name'], inputs=d['inputs'])
        return 0

    if config.bridge.dry_run and not (args.list_lights or args.show):
        bridge = HueBridge(config.bridge)
        log_event("INFO", "App", "Dry-run: skipping bridge connection")
    else:
        try:
            bridge = connect_bridge(config)
        except BridgeConnectionError as e:
            log_event("ERROR", "App", "Cannot connect to Hue bridge", host=config.bridge.host, error=e)
            print(f"pitchlight: could not connect to the Hue bridge at {config.bridge.host}: {e}",
                  file=sys.stderr)
            return 1

    if args.list_lights:
        try:
            lights = bridge.get_all_lights()
        except BridgeConnectionError as e:
            log_event("ERROR", "App", "Cannot list lights", host=config.bridge.host, error=e)
            print(f"pitchlight: could not list lights on {config.bridge.host}: {e}", file=sys.stderr)
            return 1
        for light in lights:
            log_event("INFO", "HueBridge", "Light", id=light["id"], name=light.get("name"),
                      on=light.get("state", {}).get("on"))
        return 0

    if args.show:
        light_id = config.lighting.primary_light_id
        if args.show == "cycle":
            bridge.cycle_colors(light_id)
        else:
            bridge.art_light_show(light_id)
        return 0

    return run_pipeline(config, bridge)


if __name__ == "__main__":
    sys.exit(main())
