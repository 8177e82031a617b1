import random
import struct

import pytest

from monitor_engine.event_store import EventStore
from monitor_engine.generator import ConnectionGenerator
from monitor_engine.models import Settings, SettingsError
from threat_ai.classifier import ThreatClassifier


class RecordingGenerator(ConnectionGenerator):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.generated = []

    def generate(self, settings, timestamp=None):
        conn = super().generate(settings, timestamp=timestamp)
        self.generated.append(conn)
        return conn


@pytest.fixture
def fallback_classifier(tmp_path):
    # Prefix fallback: 192.* SAFE, 172.* SUSPICIOUS, anything else MALICIOUS.
    return ThreatClassifier(model_paths=[tmp_path / "missing.tflite"])


@pytest.fixture
def loaded_classifier(tmp_path):
    path = tmp_path / "model.tflite"
    path.write_bytes(struct.pack("<64f", *[(i % 9 - 4) / 4.0 for i in range(64)]))
    return ThreatClassifier(model_paths=[path], rng=random.Random(11))


def make_store(classifier, seed=0, **settings):
    rng = random.Random(seed)
    generator = RecordingGenerator(classifier, rng=rng)
    return EventStore(classifier, settings=Settings(**settings), generator=generator, rng=rng)


def test_seeding_populates_both_windows(fallback_classifier):
    store = make_store(fallback_classifier, firewall_mode=True)
    logs = store.get_logs("ALL")
    blocked = [conn for conn in logs if conn.blocked]

    assert len(logs) == 15
    assert store.blocked_count == len(blocked)
    assert len(store.get_connections()) == 15 - len(blocked)
    timestamps = [conn.timestamp for conn in logs]
    assert timestamps == sorted(timestamps, reverse=True)


def test_windows_stay_bounded_and_newest_first(fallback_classifier):
    store = make_store(fallback_classifier, seed=5)
    latest = None
    for _ in range(260):
        latest = store.add_connection()

    connections = store.get_connections()
    logs = store.get_logs()
    assert len(connections) == 50
    assert len(logs) == 200
    assert logs[0] is latest
    assert connections[0] is latest


def test_blocked_connections_only_reach_the_log(fallback_classifier):
    store = make_store(fallback_classifier, seed=9, firewall_mode=True)
    blocked_before = store.blocked_count
    admitted = [store.add_connection() for _ in range(60)]
    newly_blocked = [conn for conn in admitted if conn.blocked]

    assert newly_blocked, "expected MALICIOUS traffic from non-192/172 prefixes"
    assert all(not conn.blocked for conn in store.get_connections())
    log_ids = {conn.id for conn in store.get_logs()}
    assert all(conn.id in log_ids for conn in newly_blocked)
    assert store.blocked_count == blocked_before + len(newly_blocked)


def test_firewall_off_never_blocks(fallback_classifier):
    store = make_store(fallback_classifier, seed=2, firewall_mode=False)
    for _ in range(50):
        store.add_connection()

    assert store.blocked_count == 0
    assert store.get_logs("BLOCKED") == []


def test_detection_gate(loaded_classifier):
    store = make_store(loaded_classifier, seed=4)
    store.update_settings({"threatDetectionEnabled": False})
    before = loaded_classifier.get_status().total_inferences

    for _ in range(25):
        conn = store.add_connection()
        assert conn.threat_level == "SAFE"
        assert conn.confidence == 0

    assert loaded_classifier.get_status().total_inferences == before


def test_monitoring_disabled_is_a_no_op(fallback_classifier):
    store = make_store(fallback_classifier, monitoring_enabled=False)
    connections_before = len(store.get_connections())
    logs_before = len(store.get_logs())

    assert [store.add_connection() for _ in range(5)] == [None] * 5
    assert len(store.get_connections()) == connections_before
    assert len(store.get_logs()) == logs_before


def test_stats_match_active_window(loaded_classifier):
    store = make_store(loaded_classifier, seed=8, firewall_mode=True)
    for _ in range(40):
        store.add_connection()

    stats = store.get_stats()
    active = store.get_connections()
    scored = [conn.confidence for conn in active if conn.confidence > 0]

    assert stats.total == len(active)
    assert stats.safe + stats.suspicious + stats.malicious == stats.total
    assert stats.malicious == 0
    assert stats.blocked == store.blocked_count
    assert stats.avg_confidence == round(sum(scored) / len(scored), 2)
    assert stats.model_active is True


def test_stats_without_detection(fallback_classifier):
    store = make_store(fallback_classifier, threat_detection_enabled=False)
    stats = store.get_stats()

    assert stats.avg_confidence == 0
    assert stats.safe == stats.total == 15
    assert stats.model_active is False


def test_model_inactive_when_classifier_not_loaded(fallback_classifier):
    assert make_store(fallback_classifier).get_stats().model_active is False


def test_update_settings_merges_single_field(fallback_classifier):
    store = make_store(fallback_classifier)
    updated = store.update_settings({"firewallMode": True})

    assert updated == Settings(monitoring_enabled=True, threat_detection_enabled=True, firewall_mode=True)
    assert store.get_settings() is updated

    store.update_settings({"monitoring_enabled": False, "unknown": True})
    assert store.get_settings().to_dict() == {
        "monitoringEnabled": False,
        "threatDetectionEnabled": True,
        "firewallMode": True,
    }


def test_update_settings_rejects_non_boolean(fallback_classifier):
    store = make_store(fallback_classifier)
    with pytest.raises(SettingsError):
        store.update_settings({"firewallMode": "yes"})
    assert store.get_settings().firewall_mode is False


def test_log_filters(fallback_classifier):
    store = make_store(fallback_classifier, seed=13, firewall_mode=True)
    for _ in range(80):
        store.add_connection()
    logs = store.get_logs("ALL")

    assert store.get_logs("BLOCKED") == [conn for conn in logs if conn.blocked]
    malicious = store.get_logs("MALICIOUS")
    assert malicious == [conn for conn in logs if conn.threat_level == "MALICIOUS"]
    assert any(conn.blocked for conn in malicious)
    assert store.get_logs("SAFE") == [conn for conn in logs if conn.threat_level == "SAFE"]
    assert store.get_logs(None) == logs
    assert store.get_logs("NOPE") == []


def test_seed_then_hundred_ticks_with_firewall(loaded_classifier):
    store = make_store(loaded_classifier, seed=21, threat_detection_enabled=True, firewall_mode=True)
    for _ in range(100):
        store.add_connection()

    generated = store.generator.generated
    assert len(generated) == 115
    malicious = [conn for conn in generated if conn.threat_level == "MALICIOUS"]
    admitted = [conn for conn in generated if not conn.blocked]

    assert store.blocked_count == len(malicious)
    assert len(store.get_connections()) == min(50, len(admitted))
    assert len(store.get_logs()) == min(200, len(generated))
