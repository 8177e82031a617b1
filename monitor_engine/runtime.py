# monitor_engine/runtime.py

from __future__ import annotations

import logging
from typing import Any, Dict

from monitor_engine.config_loader import resolve_option
from monitor_engine.event_store import MAX_CONNECTIONS, MAX_LOGS, SEED_COUNT, EventStore
from monitor_engine.logging_utils import component_logger
from monitor_engine.models import Settings
from monitor_engine.simulation import DEFAULT_INTERVAL, SimulationDriver
from threat_ai.classifier import ThreatClassifier, default_model_paths


def build_runtime(
    config: Dict[str, Any],
    settings: Dict[str, Any],
    log_level: int = logging.INFO,
    console: bool = True,
):
    """
    Construct the classifier, store and simulation driver described by a
    server config and the shared settings. The driver is returned unstarted.
    """

    def option(name, default=None):
        return resolve_option(name, config, settings, default)

    classifier = ThreatClassifier(
        model_paths=default_model_paths(option("model_path")),
        logger=component_logger("classifier", log_level, settings, console=console),
    )
    store = EventStore(
        classifier,
        settings=Settings(
            monitoring_enabled=bool(option("monitoring_enabled", True)),
            threat_detection_enabled=bool(option("threat_detection_enabled", True)),
            firewall_mode=bool(option("firewall_mode", False)),
        ),
        max_connections=int(option("max_connections", MAX_CONNECTIONS)),
        max_logs=int(option("max_logs", MAX_LOGS)),
        seed_count=int(option("seed_count", SEED_COUNT)),
        logger=component_logger("store", log_level, settings, console=console),
    )
    driver = SimulationDriver(
        store,
        interval=float(option("tick_interval", DEFAULT_INTERVAL)),
        logger=component_logger("simulation", log_level, settings, console=console),
    )
    return classifier, store, driver


__all__ = ["build_runtime"]
