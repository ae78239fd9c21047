"""
pitchlight - Network Engine
Sends light state updates to the Hue bridge from a background thread.

Commands are never queued behind each other: each light has a single pending
slot, and a newer command for the same light merges over the pending one.
The frame path only ever pays for a dict update.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from config import Config
from errors import DispatchError
from logging_utils import log_event


@dataclass
class LightCommand:
    """Partial light state for one light"""
    light_id: int
    state: dict = field(default_factory=dict)   # Any of on / bri / hue / sat

    def merged_over(self, older: "LightCommand") -> "LightCommand":
        """This command applied on top of an older pending one (newer fields win)."""
        return LightCommand(self.light_id, {**older.state, **self.state})


class NetworkEngine:
    """
    Owns the dispatch worker. `bridge` needs `connected`, `require_connected()`
    and `set_light_state(light_id, state) -> bool`.
    """

    def __init__(self, config: Config, bridge,
                 status_callback: Optional[Callable[[str, bool], None]] = None):
        self.config = config
        self.bridge = bridge
        self.status_callback = status_callback

        self.running = False
        self._dry_run = config.bridge.dry_run

        # Latest pending command per light
        self._pending: Dict[int, LightCommand] = {}
        self._cond = threading.Condition()

        self.worker_thread: Optional[threading.Thread] = None

        # Session counters
        self.sent = 0
        self.failed = 0
        self.dropped = 0

    @property
    def connected(self) -> bool:
        return bool(getattr(self.bridge, "connected", False))

    def start(self) -> None:
        """Start the dispatch worker"""
        if self.running:
            return

        self.running = True
        self.worker_thread = threading.Thread(target=self._worker_loop, name="NetworkEngine", daemon=True)
        self.worker_thread.start()
        log_event("INFO", "NetworkEngine", "Started", dry_run=self._dry_run)

    def stop(self, flush: bool = True) -> None:
        """Stop the worker, optionally sending whatever is still pending first."""
        with self._cond:
            self.running = False
            self._cond.notify_all()
        if self.worker_thread:
            self.worker_thread.join(timeout=2.0)
            self.worker_thread = None

        if flush:
            for cmd in self._take_pending():
                self._dispatch(cmd)
        else:
            with self._cond:
                self.dropped += len(self._pending)
                self._pending.clear()

        log_event("INFO", "NetworkEngine", "Stopped",
                  sent=self.sent, failed=self.failed, dropped=self.dropped)

    def submit(self, cmd: LightCommand) -> None:
        """Hand a command to the worker without blocking.

        Raises BridgeConnectionError when no bridge connection was established.
        """
        if not self._dry_run:
            self.bridge.require_connected()
        with self._cond:
            older = self._pending.get(cmd.light_id)
            if older is not None:
                cmd = cmd.merged_over(older)
                self.dropped += 1
            self._pending[cmd.light_id] = cmd
            self._cond.notify()

    def set_dry_run(self, enabled: bool) -> None:
        """Enable/disable dry-run mode (log only, no network send)."""
        self._dry_run = enabled
        state = "ON" if enabled else "OFF"
        log_event("INFO", "NetworkEngine", f"Dry-run {state}")

    def pending_count(self) -> int:
        with self._cond:
            return len(self._pending)

    def _take_pending(self) -> list[LightCommand]:
        with self._cond:
            batch = list(self._pending.values())
            self._pending.clear()
        return batch

    def _worker_loop(self) -> None:
        """Background worker that sends the latest command per light"""
        while True:
            with self._cond:
                while self.running and not self._pending:
                    self._cond.wait(timeout=0.1)
                if not self.running:
                    return
            for cmd in self._take_pending():
                self._dispatch(cmd)

    def _dispatch(self, cmd: LightCommand) -> bool:
        """Send one command, retrying per config. Failures are logged, never raised."""
        if self._dry_run:
            log_event("INFO", "NetworkEngine", "Dry-run", light=cmd.light_id, state=cmd.state)
            self.sent += 1
            return True

        attempts = 1 + max(0, int(self.config.bridge.dispatch_retries))
        for attempt in range(1, attempts + 1):
            try:
                if self.bridge.set_light_state(cmd.light_id, cmd.state):
                    self.sent += 1
                    return True
                error = DispatchError(cmd.light_id, "bridge rejected state")
            except DispatchError as e:
                error = e
            except Exception as e:
                error = DispatchError(cmd.light_id, str(e))

            if attempt < attempts:
                time.sleep(self.config.bridge.retry_backoff_s * attempt)

        self.failed += 1
        log_event("WARN", "NetworkEngine", "Light update failed",
                  light=cmd.light_id, state=cmd.state, error=error.reason, attempts=attempts)
        self._notify_status(f"Light {cmd.light_id} update failed", self.connected)
        return False

    def _notify_status(self, message: str, connected: bool) -> None:
        """Notify status callback"""
        if self.status_callback:
            self.status_callback(message, connected)
