import logging

import pytest

from monitor_engine import logging_utils


@pytest.fixture
def log_dir(tmp_path, monkeypatch):
    log_dir = tmp_path / "logs"
    monkeypatch.setattr("monitor_engine.config_loader.LOG_DIR", log_dir)
    monkeypatch.setattr("monitor_engine.config_loader.DATA_DIR", tmp_path / "data")
    monkeypatch.setattr("monitor_engine.config_loader.MODELS_DIR", tmp_path / "models")
    monkeypatch.setattr("monitor_engine.logging_utils.LOG_DIR", log_dir)
    return log_dir


def _close(logger):
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


def test_configure_logger_uses_rotation(log_dir):
    logger = logging_utils.configure_logger(
        "test.genzex.rotation",
        "test.log",
        max_bytes=1024,
        backup_count=2,
        console=False,
    )

    try:
        rotating_handlers = [h for h in logger.handlers if h.__class__.__name__ == "RotatingFileHandler"]
        assert rotating_handlers, "Expected RotatingFileHandler in logger handlers"
        assert rotating_handlers[0].backupCount == 2
        assert (log_dir / "test.log").exists()
        assert logger.propagate is False
    finally:
        _close(logger)


def test_configure_logger_is_idempotent(log_dir):
    first = logging_utils.configure_logger("test.genzex.idempotent", "idem.log", console=True)
    try:
        second = logging_utils.configure_logger("test.genzex.idempotent", "idem.log", console=True)
        assert first is second
        assert len(second.handlers) == 2
    finally:
        _close(first)


def test_component_logger_honours_settings(log_dir):
    logger = logging_utils.component_logger(
        "unittest",
        logging.DEBUG,
        settings={"log_max_bytes": 0, "log_backup_count": 1},
        console=False,
    )

    try:
        assert logger.name == "genzex.unittest"
        assert logger.level == logging.DEBUG
        assert [h.__class__.__name__ for h in logger.handlers] == ["FileHandler"]
        assert (log_dir / "unittest.log").exists()

        logging_utils.update_log_level(logger, logging.WARNING)
        assert all(h.level == logging.WARNING for h in logger.handlers)
    finally:
        _close(logger)
