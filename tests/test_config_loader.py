import json

import pytest

from monitor_engine.config_loader import (
    DEFAULT_SHARED_SETTINGS,
    load_server_config,
    load_settings,
    resolve_option,
)


def test_load_settings_merges_file_over_defaults(tmp_path, monkeypatch):
    settings_path = tmp_path / "data" / "settings.json"
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text(json.dumps({"firewall_mode": True, "seed_count": 4}))

    monkeypatch.setattr("monitor_engine.config_loader.DEFAULT_SETTINGS_FILE", settings_path)
    settings = load_settings(defaults=DEFAULT_SHARED_SETTINGS)

    assert settings["firewall_mode"] is True
    assert settings["seed_count"] == 4
    assert settings["max_logs"] == 200
    assert DEFAULT_SHARED_SETTINGS["firewall_mode"] is False


def test_load_settings_without_file(tmp_path, monkeypatch):
    monkeypatch.setattr("monitor_engine.config_loader.DEFAULT_SETTINGS_FILE", tmp_path / "missing.json")
    assert load_settings() == {}


def test_load_settings_ignores_corrupt_file(tmp_path, monkeypatch):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text("{not json")

    monkeypatch.setattr("monitor_engine.config_loader.DEFAULT_SETTINGS_FILE", settings_path)
    assert load_settings(defaults={"tick_interval": 3}) == {"tick_interval": 3}


def test_load_server_config_merges_settings(tmp_path, monkeypatch):
    config_path = tmp_path / "server.json"
    config_path.write_text(json.dumps({"port": 8080, "max_connections": 10}))

    settings_path = tmp_path / "data" / "settings.json"
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text(json.dumps({"max_connections": 25, "threat_detection_enabled": False}))

    monkeypatch.setattr("monitor_engine.config_loader.DEFAULT_SETTINGS_FILE", settings_path)

    config, settings = load_server_config(str(config_path), defaults={"bind_ip": "0.0.0.0", "port": 5000})

    assert config == {"bind_ip": "0.0.0.0", "port": 8080, "max_connections": 10}
    assert settings["threat_detection_enabled"] is False
    assert resolve_option("max_connections", config, settings) == 10
    assert resolve_option("threat_detection_enabled", config, settings) is False
    assert resolve_option("unknown", config, settings, default=7) == 7


def test_load_server_config_missing_file(tmp_path):
    with pytest.raises(RuntimeError, match="Failed to load server config"):
        load_server_config(str(tmp_path / "nope.json"), include_settings=False)
