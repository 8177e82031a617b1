# monitor_engine/event_store.py

from __future__ import annotations

import logging
import random
import threading
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Deque, List, Mapping, Optional

from .firewall_hooks import record_firewall_action
from .generator import ConnectionGenerator
from .models import (
    FILTER_ALL,
    FILTER_BLOCKED,
    MALICIOUS,
    SAFE,
    SUSPICIOUS,
    Connection,
    DashboardStats,
    Settings,
)

MAX_CONNECTIONS = 50
MAX_LOGS = 200
SEED_COUNT = 15
SEED_WINDOW_MS = 300_000


class EventStore:
    """
    Bounded, newest-first store of generated connections.

    ``connections`` holds the active (non-blocked) window, ``logs`` every
    admitted connection including blocked ones. Both drop their oldest entry
    once full. The blocked counter is cumulative and never windowed.
    """

    def __init__(
        self,
        classifier,
        settings: Optional[Settings] = None,
        generator: Optional[ConnectionGenerator] = None,
        max_connections: int = MAX_CONNECTIONS,
        max_logs: int = MAX_LOGS,
        seed_count: int = SEED_COUNT,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.classifier = classifier
        self.rng = rng or random.Random()
        self.generator = generator or ConnectionGenerator(classifier, rng=self.rng)
        self.logger = logger or logging.getLogger("genzex.store")
        self._lock = threading.Lock()
        self._settings = settings or Settings()
        self._connections: Deque[Connection] = deque(maxlen=max_connections)
        self._logs: Deque[Connection] = deque(maxlen=max_logs)
        self._blocked_count = 0
        self._seed(seed_count)

    # ------------------------------------------------------------------ #
    # Admission
    # ------------------------------------------------------------------ #
    def _seed(self, count: int) -> None:
        if count <= 0:
            return
        now = datetime.now(timezone.utc)
        settings = self._settings
        seeded = [
            self.generator.generate(
                settings,
                timestamp=now - timedelta(milliseconds=self.rng.randint(0, SEED_WINDOW_MS)),
            )
            for _ in range(count)
        ]
        # Oldest first, so the newest seed ends up at the head of each window.
        seeded.sort(key=lambda conn: conn.timestamp)
        with self._lock:
            for conn in seeded:
                self._admit(conn)
        self.logger.info(
            "Seeded %s connections (%s active, %s blocked)",
            count,
            len(self._connections),
            self._blocked_count,
        )

    def _admit(self, conn: Connection) -> None:
        if conn.blocked:
            self._blocked_count += 1
        else:
            self._connections.appendleft(conn)
        self._logs.appendleft(conn)

    def add_connection(self) -> Optional[Connection]:
        settings = self._settings
        if not settings.monitoring_enabled:
            return None

        conn = self.generator.generate(settings)
        with self._lock:
            self._admit(conn)
        record_firewall_action(conn, self.logger)
        self.logger.debug(
            "Admitted %s %s:%s %s (%.2f)",
            conn.app_name,
            conn.ip_address,
            conn.port,
            conn.threat_level,
            conn.confidence,
        )
        return conn

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    def get_connections(self) -> List[Connection]:
        with self._lock:
            return list(self._connections)

    def get_logs(self, filter: Optional[str] = None) -> List[Connection]:
        with self._lock:
            logs = list(self._logs)
        if not filter or filter == FILTER_ALL:
            return logs
        if filter == FILTER_BLOCKED:
            return [conn for conn in logs if conn.blocked]
        return [conn for conn in logs if conn.threat_level == filter]

    @property
    def blocked_count(self) -> int:
        return self._blocked_count

    def get_stats(self) -> DashboardStats:
        with self._lock:
            active = list(self._connections)
            blocked = self._blocked_count
        scored = [conn.confidence for conn in active if conn.confidence > 0]
        avg_confidence = round(sum(scored) / len(scored), 2) if scored else 0
        return DashboardStats(
            total=len(active),
            safe=sum(1 for conn in active if conn.threat_level == SAFE),
            suspicious=sum(1 for conn in active if conn.threat_level == SUSPICIOUS),
            malicious=sum(1 for conn in active if conn.threat_level == MALICIOUS),
            blocked=blocked,
            model_active=self._settings.threat_detection_enabled and self.classifier.loaded,
            avg_confidence=avg_confidence,
        )

    # ------------------------------------------------------------------ #
    # Settings
    # ------------------------------------------------------------------ #
    def get_settings(self) -> Settings:
        return self._settings

    def update_settings(self, updates: Mapping[str, Any]) -> Settings:
        with self._lock:
            self._settings = self._settings.merged(updates)
            settings = self._settings
        self.logger.info("Settings updated: %s", settings.to_dict())
        return settings


__all__ = ["EventStore", "MAX_CONNECTIONS", "MAX_LOGS", "SEED_COUNT"]
