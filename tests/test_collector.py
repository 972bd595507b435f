"""
Brief: Tests for the Collector cycle and the background Poller.

Inputs:
  - None

Outputs:
  - None
"""

import threading
import time

import pdnsstats.targets as targets_mod
from pdnsstats.collector import Collector, Poller
from pdnsstats.config.config_parser import CollectorSettings
from pdnsstats.submit import Submitter
from pdnsstats.targets import RecursorTarget, ServerTarget, TargetRegistry


def _collector(dispatcher, **settings):
    reg = TargetRegistry()
    reg.add(ServerTarget("local", socket_path="/srv.sock"))
    reg.add(RecursorTarget("rec", command="get questions", socket_path="/rec.sock"))
    sub = Submitter(dispatcher, clock=lambda: 1.0, hostname="ns1")
    return Collector(reg, sub, CollectorSettings(**settings))


def test_run_cycle_passes_settings_to_every_target(monkeypatch, fake_dispatcher):
    calls = []

    def fake_fetch(kind, path, command, **kw):
        calls.append((path, kw["local_path"], kw["timeout_ms"]))
        return b"udp-queries=4," if path == "/srv.sock" else b"9"

    monkeypatch.setattr(targets_mod, "fetch_reply", fake_fetch)
    c = _collector(fake_dispatcher, local_socket="/tmp/pds-l.sock", timeout_ms=0)

    results = c.run_cycle()

    assert results == {"server/local": True, "recursor/rec": True}
    # timeout_ms of 0 means no timeout
    assert calls == [
        ("/srv.sock", "/tmp/pds-l.sock", None),
        ("/rec.sock", "/tmp/pds-l.sock", None),
    ]
    assert [(o.plugin_instance, o.values) for o in fake_dispatcher.observations] == [
        ("local", (4,)),
        ("rec", (9,)),
    ]


def test_run_cycles_do_not_overlap(monkeypatch, fake_dispatcher):
    active = {"now": 0, "max": 0}
    lock = threading.Lock()

    def slow_fetch(kind, path, command, **kw):
        with lock:
            active["now"] += 1
            active["max"] = max(active["max"], active["now"])
        time.sleep(0.02)
        with lock:
            active["now"] -= 1
        return b""

    monkeypatch.setattr(targets_mod, "fetch_reply", slow_fetch)
    c = _collector(fake_dispatcher)
    threads = [threading.Thread(target=c.run_cycle) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)
    assert active["max"] == 1


def test_poller_runs_immediately_and_on_trigger(monkeypatch, fake_dispatcher):
    """
    Brief: The first cycle starts at once; trigger() skips the wait.

    Inputs:
      - Poller with a long interval

    Outputs:
      - None: Asserts cycle count grows without waiting the interval
    """
    cycles = []
    second = threading.Event()

    def fake_fetch(kind, path, command, **kw):
        cycles.append(path)
        if len(cycles) >= 4:
            second.set()
        return b""

    monkeypatch.setattr(targets_mod, "fetch_reply", fake_fetch)
    poller = Poller(_collector(fake_dispatcher, interval=3600))
    assert poller.daemon and poller.name == "Poller"
    assert poller.interval_seconds == 3600

    poller.start()
    try:
        deadline = time.time() + 5
        while len(cycles) < 2 and time.time() < deadline:
            time.sleep(0.01)
        assert len(cycles) == 2
        poller.trigger()
        assert second.wait(5)
    finally:
        poller.stop(timeout=5)
    assert not poller.is_alive()
    assert poller.cycles >= 2


def test_poller_interval_floor(fake_dispatcher):
    poller = Poller(_collector(fake_dispatcher), interval_seconds=0)
    assert poller.interval_seconds == 0.01
    poller.stop()
