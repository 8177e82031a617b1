from monitor_engine.firewall_hooks import record_firewall_action, should_block
from monitor_engine.models import Connection, Settings


class DummyLogger:
    def __init__(self):
        self.messages = []

    def warning(self, msg, *args, **kwargs):
        self.messages.append(("warning", msg % args if args else msg))

    def debug(self, msg, *args, **kwargs):
        self.messages.append(("debug", msg % args if args else msg))


def make_connection(blocked):
    return Connection(
        id="c-1",
        app_name="Steam",
        ip_address="45.1.2.3",
        protocol="TCP",
        port=4444,
        threat_level="MALICIOUS",
        confidence=0.91,
        timestamp="2024-01-01T00:00:00.000Z",
        blocked=blocked,
    )


def test_should_block_policy():
    assert should_block(Settings(firewall_mode=True), "MALICIOUS") is True
    assert should_block(Settings(firewall_mode=True), "SUSPICIOUS") is False
    assert should_block(Settings(firewall_mode=False), "MALICIOUS") is False


def test_record_firewall_action_logs_block():
    logger = DummyLogger()
    decision = record_firewall_action(make_connection(blocked=True), logger)

    assert decision == "block"
    level, message = logger.messages[-1]
    assert level == "warning"
    assert "[FIREWALL ACTION] BLOCK" in message
    assert "45.1.2.3:4444" in message


def test_record_firewall_action_allow_is_debug():
    logger = DummyLogger()
    assert record_firewall_action(make_connection(blocked=False), logger) == "allow"
    assert logger.messages[-1][0] == "debug"
