# monitor_engine/generator.py

from __future__ import annotations

import random
import uuid
from datetime import datetime
from typing import Callable, Optional

from .firewall_hooks import should_block
from .models import PROTOCOLS, SAFE, Connection, Settings, utc_timestamp

APP_NAMES = (
    "Chrome", "Firefox", "Slack", "Discord", "Spotify",
    "VSCode", "Terminal", "Docker", "Nginx", "Redis",
    "MongoDB", "PostgreSQL", "Node.js", "Python", "Webpack",
    "Electron", "Steam", "Zoom", "Teams", "Postman",
    "Git", "SSH Client", "FTP Client", "DNS Resolver", "Mail Client",
)

# Mix of private ranges and prefixes the classifier treats as suspicious.
FIRST_OCTETS = (192, 172, 10, 45, 89, 123, 200, 156, 78, 33)
PORT_RANGE = (1024, 65535)


class ConnectionGenerator:
    """Fabricates plausible connection records and labels them with the classifier."""

    def __init__(self, classifier, rng: Optional[random.Random] = None, id_factory: Optional[Callable[[], str]] = None):
        self.classifier = classifier
        self.rng = rng or random.Random()
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))

    def random_ip(self) -> str:
        first = self.rng.choice(FIRST_OCTETS)
        return f"{first}.{self.rng.randint(0, 255)}.{self.rng.randint(0, 255)}.{self.rng.randint(1, 254)}"

    def generate(self, settings: Settings, timestamp: Optional[datetime] = None) -> Connection:
        ip = self.random_ip()
        port = self.rng.randint(*PORT_RANGE)
        protocol = self.rng.choice(PROTOCOLS)

        if settings.threat_detection_enabled:
            result = self.classifier.classify(ip, port, protocol)
            threat_level, confidence = result.threat_level, result.confidence
        else:
            threat_level, confidence = SAFE, 0

        return Connection(
            id=self.id_factory(),
            app_name=self.rng.choice(APP_NAMES),
            ip_address=ip,
            protocol=protocol,
            port=port,
            threat_level=threat_level,
            confidence=confidence,
            timestamp=utc_timestamp(timestamp),
            blocked=should_block(settings, threat_level),
        )


__all__ = ["APP_NAMES", "FIRST_OCTETS", "ConnectionGenerator"]
