import threading
import time

from monitor_engine.models import Settings
from monitor_engine.simulation import SimulationDriver


class FakeStore:
    def __init__(self, monitoring=True, fail_first=False):
        self.settings = Settings(monitoring_enabled=monitoring)
        self.fail_first = fail_first
        self.calls = 0
        self.ticked = threading.Event()

    def get_settings(self):
        return self.settings

    def add_connection(self):
        self.calls += 1
        if self.fail_first and self.calls == 1:
            raise RuntimeError("boom")
        if self.calls >= 3:
            self.ticked.set()
        return f"conn-{self.calls}"


def test_tick_admits_exactly_one_connection():
    store = FakeStore()
    driver = SimulationDriver(store, interval=10)

    assert driver.tick() == "conn-1"
    assert store.calls == 1


def test_tick_skips_when_monitoring_disabled():
    store = FakeStore(monitoring=False)
    driver = SimulationDriver(store, interval=10)

    assert driver.tick() is None
    assert store.calls == 0


def test_background_loop_ticks_until_stopped():
    store = FakeStore()
    driver = SimulationDriver(store, interval=0.01)

    driver.start()
    assert driver.running
    assert store.ticked.wait(timeout=2)
    driver.stop()

    assert not driver.running
    calls = store.calls
    time.sleep(0.05)
    assert store.calls == calls


def test_loop_survives_a_failing_tick():
    store = FakeStore(fail_first=True)
    driver = SimulationDriver(store, interval=0.01)

    driver.start()
    try:
        assert store.ticked.wait(timeout=2)
    finally:
        driver.stop()
    assert store.calls >= 3


def test_start_is_idempotent():
    driver = SimulationDriver(FakeStore(), interval=5)
    first = driver.start()
    try:
        assert driver.start() is first
    finally:
        driver.stop()
