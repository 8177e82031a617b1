# monitor_engine/logging_utils.py

"""
Central logging helpers for Genzex Monitor components.
Creates scoped loggers that write both to stdout and the ~/.genzex/logs directory.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from .config_loader import LOG_DIR, ensure_runtime_dirs

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOGGER_PREFIX = "genzex"


def configure_logger(
    name: str,
    logfile: str,
    level: int = logging.INFO,
    console: bool = True,
    fmt: str = DEFAULT_FORMAT,
    max_bytes: int | None = 5 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Return a configured logger writing to ~/.genzex/logs/<logfile>.
    Idempotent: repeated calls return the same configured logger.
    """
    ensure_runtime_dirs()
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    log_path = Path(LOG_DIR) / logfile
    formatter = logging.Formatter(fmt)

    log_path.parent.mkdir(parents=True, exist_ok=True)
    if max_bytes:
        file_handler: logging.Handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
    else:
        file_handler = logging.FileHandler(log_path)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    logger.propagate = False
    return logger


def component_logger(
    component: str,
    level: int = logging.INFO,
    settings: Optional[Dict[str, Any]] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure ``genzex.<component>`` writing to ``<component>.log``, honouring
    the ``log_max_bytes``/``log_backup_count`` shared settings.
    """
    settings = settings or {}
    max_bytes = int(settings.get("log_max_bytes", 5 * 1024 * 1024) or 0)
    backup_count = int(settings.get("log_backup_count", 5))
    logger = configure_logger(
        f"{LOGGER_PREFIX}.{component}",
        f"{component}.log",
        level=level,
        console=console,
        max_bytes=max_bytes if max_bytes > 0 else None,
        backup_count=backup_count,
    )
    update_log_level(logger, level)
    return logger


def update_log_level(logger: logging.Logger, level: int) -> None:
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


__all__ = ["configure_logger", "component_logger", "update_log_level"]
