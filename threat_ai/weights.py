# threat_ai/weights.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

import numpy as np

MAX_ABS_WEIGHT = 100.0
MIN_FLOAT_WEIGHTS = 10


def extract_weights(buffer: bytes) -> np.ndarray:
    """
    Reinterpret a binary model file as a weight table.

    Whole 4-byte words are read as little-endian float32 and only finite
    values with ``abs(v) < 100`` are kept. When fewer than 10 survive, every
    raw byte scaled to [0, 1] is used instead.
    """
    if not buffer:
        return np.empty(0, dtype=np.float64)
    word_count = len(buffer) // 4
    floats = np.frombuffer(buffer, dtype="<f4", count=word_count).astype(np.float64)
    usable = floats[np.isfinite(floats) & (np.abs(floats) < MAX_ABS_WEIGHT)]
    if usable.size >= MIN_FLOAT_WEIGHTS:
        return usable
    return np.frombuffer(buffer, dtype=np.uint8).astype(np.float64) / 255.0


def load_weight_buffer(
    candidates: Iterable[Path],
    logger: Optional[logging.Logger] = None,
) -> Tuple[Optional[bytes], Optional[Path]]:
    """Return the bytes and path of the first readable candidate, or (None, None)."""
    logger = logger or logging.getLogger("genzex.classifier")
    for candidate in candidates:
        path = Path(candidate).expanduser()
        try:
            return path.read_bytes(), path
        except OSError as exc:
            logger.debug("Model candidate %s unreadable: %s", path, exc)
    return None, None


__all__ = ["extract_weights", "load_weight_buffer"]
