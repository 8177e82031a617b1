# monitor_engine/models.py

"""
Value objects shared by the store, the HTTP API and the client backends.

Attributes are snake_case in Python; ``to_dict``/``from_dict`` speak the
camelCase JSON wire format consumed by dashboards.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from threat_ai.scoring import LABELS, MALICIOUS, SAFE, SUSPICIOUS

THREAT_LEVELS = LABELS

PROTOCOLS = ("TCP", "UDP", "HTTP", "HTTPS", "DNS")

FILTER_ALL = "ALL"
FILTER_BLOCKED = "BLOCKED"
LOG_FILTERS = (FILTER_ALL, *THREAT_LEVELS, FILTER_BLOCKED)

DEFAULT_ANALYZE_PORT = 443
DEFAULT_ANALYZE_PROTOCOL = "TCP"


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SettingsError(ValueError):
    """Raised when a settings update carries a non-boolean value."""


def parse_analyze_request(payload: Mapping[str, Any]) -> Tuple[str, int, str]:
    """Validate an ad hoc analyze request; returns (ip, port, protocol) or raises ValueError."""
    ip = payload.get("ip")
    if not ip:
        raise ValueError("IP address required")
    try:
        ipaddress.IPv4Address(str(ip))
    except ipaddress.AddressValueError:
        raise ValueError(f"Invalid IPv4 address '{ip}'")

    port = payload.get("port") or DEFAULT_ANALYZE_PORT
    if isinstance(port, bool):
        raise ValueError("Port must be an integer")
    try:
        port = int(port)
    except (TypeError, ValueError):
        raise ValueError("Port must be an integer")
    if not 0 < port <= 65535:
        raise ValueError("Port must be between 1 and 65535")

    protocol = str(payload.get("protocol") or DEFAULT_ANALYZE_PROTOCOL)
    return str(ip), port, protocol


@dataclass(frozen=True)
class Connection:
    id: str
    app_name: str
    ip_address: str
    protocol: str
    port: int
    threat_level: str
    confidence: float
    timestamp: str
    blocked: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "appName": self.app_name,
            "ipAddress": self.ip_address,
            "protocol": self.protocol,
            "port": self.port,
            "threatLevel": self.threat_level,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
            "blocked": self.blocked,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Connection":
        return cls(
            id=str(payload["id"]),
            app_name=payload["appName"],
            ip_address=payload["ipAddress"],
            protocol=payload["protocol"],
            port=int(payload["port"]),
            threat_level=payload["threatLevel"],
            confidence=float(payload.get("confidence", 0)),
            timestamp=payload["timestamp"],
            blocked=bool(payload.get("blocked", False)),
        )


_SETTINGS_WIRE_NAMES = {
    "monitoring_enabled": "monitoringEnabled",
    "threat_detection_enabled": "threatDetectionEnabled",
    "firewall_mode": "firewallMode",
}
_SETTINGS_ATTR_NAMES = {wire: attr for attr, wire in _SETTINGS_WIRE_NAMES.items()}


def settings_update(updates: Mapping[str, Any]) -> Dict[str, bool]:
    """
    Normalize a partial settings update to camelCase wire keys. Keys may be
    snake_case or camelCase; unknown keys are dropped and non-boolean values
    rejected.
    """
    normalized: Dict[str, bool] = {}
    for key, value in updates.items():
        wire = _SETTINGS_WIRE_NAMES.get(key, key)
        if wire not in _SETTINGS_ATTR_NAMES:
            continue
        if not isinstance(value, bool):
            raise SettingsError(f"Setting '{key}' must be a boolean")
        normalized[wire] = value
    return normalized


@dataclass(frozen=True)
class Settings:
    monitoring_enabled: bool = True
    threat_detection_enabled: bool = True
    firewall_mode: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {wire: getattr(self, attr) for attr, wire in _SETTINGS_WIRE_NAMES.items()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Settings":
        return cls().merged(payload)

    def merged(self, updates: Mapping[str, Any]) -> "Settings":
        changes = {_SETTINGS_ATTR_NAMES[wire]: value for wire, value in settings_update(updates).items()}
        return replace(self, **changes)


@dataclass(frozen=True)
class DashboardStats:
    total: int
    safe: int
    suspicious: int
    malicious: int
    blocked: int
    model_active: bool
    avg_confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "safe": self.safe,
            "suspicious": self.suspicious,
            "malicious": self.malicious,
            "blocked": self.blocked,
            "modelActive": self.model_active,
            "avgConfidence": self.avg_confidence,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DashboardStats":
        return cls(
            total=int(payload["total"]),
            safe=int(payload["safe"]),
            suspicious=int(payload["suspicious"]),
            malicious=int(payload["malicious"]),
            blocked=int(payload["blocked"]),
            model_active=bool(payload["modelActive"]),
            avg_confidence=float(payload["avgConfidence"]),
        )


__all__ = [
    "SAFE",
    "SUSPICIOUS",
    "MALICIOUS",
    "THREAT_LEVELS",
    "PROTOCOLS",
    "FILTER_ALL",
    "FILTER_BLOCKED",
    "LOG_FILTERS",
    "Connection",
    "Settings",
    "SettingsError",
    "settings_update",
    "parse_analyze_request",
    "DashboardStats",
    "utc_timestamp",
]
