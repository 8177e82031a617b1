# monitor_engine/backend.py

"""
Transport-agnostic access to a monitor core.

``RemoteBackend`` talks to a running API server over HTTP; ``LocalBackend``
drives an in-process ``EventStore``/``ThreatClassifier`` pair. Both expose the
same methods and return the same value objects, so callers never need to know
which one they hold. ``resolve_backend`` prefers a reachable server and falls
back to an offline, in-process core.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

import requests

from .event_store import EventStore
from .runtime import build_runtime
from .models import Connection, DashboardStats, Settings, parse_analyze_request, settings_update
from threat_ai.classifier import InferenceResult, ModelStatus, ThreatClassifier

DEFAULT_TIMEOUT = 5


class BackendError(RuntimeError):
    """Raised when a remote monitor cannot be reached or rejects a request."""


class LocalBackend:
    is_local = True

    def __init__(self, store: EventStore, classifier: ThreatClassifier):
        self.store = store
        self.classifier = classifier

    def get_connections(self) -> List[Connection]:
        return self.store.get_connections()

    def get_stats(self) -> DashboardStats:
        return self.store.get_stats()

    def get_logs(self, filter: str = "ALL") -> List[Connection]:
        return self.store.get_logs(filter)

    def generate(self) -> Optional[Connection]:
        return self.store.add_connection()

    def get_settings(self) -> Settings:
        return self.store.get_settings()

    def update_settings(self, **changes: bool) -> Settings:
        return self.store.update_settings(changes)

    def get_model_status(self) -> ModelStatus:
        return self.classifier.get_status()

    def analyze(self, ip: str, port: int = 443, protocol: str = "TCP") -> InferenceResult:
        ip, port, protocol = parse_analyze_request({"ip": ip, "port": port, "protocol": protocol})
        return self.classifier.classify(ip, port, protocol)


class RemoteBackend:
    is_local = False

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, endpoint: str, **kwargs) -> Union[Dict[str, Any], List[Any]]:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise BackendError(f"Connection error: {exc}") from exc
        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = body.get("error", response.text) if isinstance(body, dict) else response.text
            raise BackendError(f"HTTP {response.status_code}: {detail}")
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(f"Invalid JSON from {url}") from exc

    def ping(self) -> bool:
        try:
            return self._request("GET", "/healthz").get("status") == "ok"
        except BackendError:
            return False

    def get_connections(self) -> List[Connection]:
        return [Connection.from_dict(item) for item in self._request("GET", "/api/connections")]

    def get_stats(self) -> DashboardStats:
        return DashboardStats.from_dict(self._request("GET", "/api/stats"))

    def get_logs(self, filter: str = "ALL") -> List[Connection]:
        payload = self._request("GET", "/api/logs", params={"filter": filter})
        return [Connection.from_dict(item) for item in payload]

    def generate(self) -> Optional[Connection]:
        payload = self._request("POST", "/api/connections/generate")
        if payload.get("skipped"):
            return None
        return Connection.from_dict(payload)

    def get_settings(self) -> Settings:
        return Settings.from_dict(self._request("GET", "/api/settings"))

    def update_settings(self, **changes: bool) -> Settings:
        body = settings_update(changes)
        return Settings.from_dict(self._request("PUT", "/api/settings", json=body))

    def get_model_status(self) -> ModelStatus:
        return ModelStatus.from_dict(self._request("GET", "/api/model/status"))

    def analyze(self, ip: str, port: int = 443, protocol: str = "TCP") -> InferenceResult:
        payload = self._request("POST", "/api/model/analyze", json={"ip": ip, "port": port, "protocol": protocol})
        return InferenceResult.from_dict(payload)


def build_local_backend(config: Optional[Dict[str, Any]] = None, settings: Optional[Dict[str, Any]] = None, log_level: int = logging.INFO):
    """Return ``(LocalBackend, SimulationDriver)`` wired from fresh core instances."""
    classifier, store, driver = build_runtime(config or {}, settings or {}, log_level, console=False)
    return LocalBackend(store, classifier), driver


def resolve_backend(
    url: Optional[str],
    settings: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
    logger: Optional[logging.Logger] = None,
    session: Optional[requests.Session] = None,
):
    """
    Return ``(backend, driver)``. A reachable server at ``url`` wins and the
    driver is None; otherwise an in-process core is built and its (not yet
    started) simulation driver is returned alongside.
    """
    logger = logger or logging.getLogger("genzex.monitor")
    if url:
        remote = RemoteBackend(url, timeout=timeout, session=session)
        if remote.ping():
            logger.info("Using Genzex API at %s", url)
            return remote, None
        logger.warning("Genzex API at %s unreachable; falling back to local simulation", url)
    return build_local_backend(settings=settings)


__all__ = [
    "BackendError",
    "LocalBackend",
    "RemoteBackend",
    "build_local_backend",
    "resolve_backend",
]
