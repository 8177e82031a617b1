# threat_ai/scoring.py

"""
Three-unit scoring pass of the GenzexNet heuristic.

Hidden units read the weight table at a stride so that any table size is
usable; indices past the end read as 0.5. Their sigmoid outputs are blended
with raw features into SAFE/SUSPICIOUS/MALICIOUS scores, normalized, and
then jittered by up to +/-0.04 each. Jittered scores are clamped to [0, 1]
and do not re-sum to 1.
"""

from __future__ import annotations

import random
import time
from typing import Optional, Tuple

import numpy as np

from .features import (
    IDX_ENTROPY,
    IDX_PORT,
    IDX_PRIVATE,
    IDX_PROTOCOL,
    IDX_SUSPICIOUS_PREFIX,
)

SAFE = "SAFE"
SUSPICIOUS = "SUSPICIOUS"
MALICIOUS = "MALICIOUS"
LABELS = (SAFE, SUSPICIOUS, MALICIOUS)

HIDDEN_UNITS = 3
FALLBACK_WEIGHT = 0.5
JITTER = 0.04


def weight_step(weight_count: int, feature_count: int) -> int:
    return max(1, weight_count // (feature_count * HIDDEN_UNITS))


def _gather(weights: np.ndarray, indices: np.ndarray) -> np.ndarray:
    gathered = np.full(indices.shape, FALLBACK_WEIGHT, dtype=np.float64)
    in_range = indices < weights.size
    gathered[in_range] = weights[indices[in_range]]
    return gathered


def hidden_layer(features: np.ndarray, weights: np.ndarray) -> np.ndarray:
    feature_count = features.size
    step = weight_step(weights.size, feature_count)
    offsets = np.arange(feature_count)
    sums = np.empty(HIDDEN_UNITS, dtype=np.float64)
    for h in range(HIDDEN_UNITS):
        indices = (h * feature_count + offsets) * step
        sums[h] = float(np.dot(features, _gather(weights, indices)))
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-sums))


def blend(features: np.ndarray, hidden: np.ndarray) -> np.ndarray:
    private = features[IDX_PRIVATE]
    suspicious_prefix = features[IDX_SUSPICIOUS_PREFIX]
    https_like = 1.0 if features[IDX_PROTOCOL] > 0.75 else 0.0
    high_entropy = 1.0 if features[IDX_ENTROPY] > 0.5 else 0.0

    safe = hidden[0] * 0.3 + private * 0.4 + https_like * 0.2 + (1 - suspicious_prefix) * 0.1
    suspicious = hidden[1] * 0.3 + (1 - private) * 0.2 + features[IDX_PORT] * 0.15 + suspicious_prefix * 0.35
    malicious = hidden[2] * 0.2 + suspicious_prefix * 0.4 + (1 - private) * 0.25 + high_entropy * 0.15
    return np.array([safe, suspicious, malicious], dtype=np.float64)


def score(
    features: np.ndarray,
    weights: np.ndarray,
    rng: Optional[random.Random] = None,
) -> Tuple[np.ndarray, float]:
    """Return ([safe, suspicious, malicious], latency_ms)."""
    rng = rng or random
    start = time.perf_counter()

    scores = blend(features, hidden_layer(features, weights))
    scores = scores / scores.sum()
    jitter = np.array([rng.uniform(-JITTER, JITTER) for _ in LABELS])
    scores = np.clip(scores + jitter, 0.0, 1.0)

    latency_ms = (time.perf_counter() - start) * 1000.0
    return scores, latency_ms


__all__ = ["SAFE", "SUSPICIOUS", "MALICIOUS", "LABELS", "score", "hidden_layer", "blend", "weight_step"]
