# threat_ai/features.py

"""
Feature extraction for the GenzexNet heuristic.

A connection's (ip, port, protocol) triple becomes a fixed 10-element vector:

    [octet0..octet3 / 255, port / 65535, protocol scalar, octet entropy / 8,
     is_private, is_high_port, is_suspicious_prefix]
"""

from __future__ import annotations

import numpy as np

PROTOCOL_MAP = {
    "TCP": 0.2,
    "UDP": 0.4,
    "HTTP": 0.6,
    "HTTPS": 0.8,
    "DNS": 1.0,
}
UNKNOWN_PROTOCOL = 0.5
SUSPICIOUS_PREFIXES = {45, 89, 123, 200, 156, 78, 33}

FEATURE_COUNT = 10
IDX_PORT = 4
IDX_PROTOCOL = 5
IDX_ENTROPY = 6
IDX_PRIVATE = 7
IDX_HIGH_PORT = 8
IDX_SUSPICIOUS_PREFIX = 9


def parse_octets(ip: str) -> np.ndarray:
    return np.array([int(part) for part in ip.split(".")], dtype=np.float64)


def octet_entropy(octets: np.ndarray) -> float:
    """Shannon entropy of the octets taken as relative frequencies, scaled by 1/8."""
    total = octets.sum() or 1.0
    probs = octets[octets > 0] / total
    entropy = -np.sum(probs * np.log2(probs))
    return float(entropy) / 8.0


def is_private(octets: np.ndarray) -> bool:
    first, second = octets[0], octets[1]
    if first == 10:
        return True
    if first == 172 and 16 <= second <= 31:
        return True
    return first == 192 and second == 168


def extract_features(ip: str, port: int, protocol: str) -> np.ndarray:
    octets = parse_octets(ip)
    features = np.empty(FEATURE_COUNT, dtype=np.float64)
    features[:4] = octets / 255.0
    features[IDX_PORT] = port / 65535.0
    features[IDX_PROTOCOL] = PROTOCOL_MAP.get(protocol, UNKNOWN_PROTOCOL)
    features[IDX_ENTROPY] = octet_entropy(octets)
    features[IDX_PRIVATE] = 1.0 if is_private(octets) else 0.0
    features[IDX_HIGH_PORT] = 1.0 if port > 1024 else 0.0
    features[IDX_SUSPICIOUS_PREFIX] = 1.0 if int(octets[0]) in SUSPICIOUS_PREFIXES else 0.0
    return features


__all__ = [
    "FEATURE_COUNT",
    "PROTOCOL_MAP",
    "SUSPICIOUS_PREFIXES",
    "extract_features",
    "octet_entropy",
]
