# monitor_engine/simulation.py

from __future__ import annotations

import logging
import threading
from typing import Optional

from .event_store import EventStore

DEFAULT_INTERVAL = 3.0


class SimulationDriver:
    """
    Admits one synthetic connection into the store every ``interval`` seconds
    from a daemon thread, for as long as monitoring is enabled.
    """

    def __init__(self, store: EventStore, interval: float = DEFAULT_INTERVAL, logger: Optional[logging.Logger] = None):
        self.store = store
        self.interval = interval
        self.logger = logger or logging.getLogger("genzex.simulation")
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> threading.Thread:
        if self._thread and self._thread.is_alive():
            return self._thread

        self.logger.info("Starting traffic simulation | interval=%ss", self.interval)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="genzex-simulation", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, wait: bool = True) -> None:
        self._stop_event.set()
        if wait and self._thread:
            self._thread.join(timeout=self.interval + 1)
        self.logger.info("Traffic simulation stopped.")

    def tick(self):
        if not self.store.get_settings().monitoring_enabled:
            self.logger.debug("Monitoring disabled; skipping tick")
            return None
        return self.store.add_connection()

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.tick()
            except Exception:
                self.logger.exception("Simulation tick failed")


__all__ = ["SimulationDriver", "DEFAULT_INTERVAL"]
