"""
Brief: Tests for the pdnsstats CLI entry point.

Inputs:
  - None

Outputs:
  - None
"""

import json
import os
import signal
import socket
import threading

import pytest

from pdnsstats.main import main


@pytest.fixture(autouse=True)
def _root_logger(restore_root_logger):
    yield


@pytest.fixture
def pdns_server(sock_dir):
    """
    Brief: Stream control socket answering every connection with SHOW * output.

    Outputs:
      - dict with 'path' and the list of received 'requests'
    """
    path = os.path.join(sock_dir, "pdns.sock")
    srv = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    srv.bind(path)
    srv.listen(4)
    srv.settimeout(5)
    state = {"path": path, "requests": []}
    stop = threading.Event()

    def runner():
        while not stop.is_set():
            try:
                conn, _ = srv.accept()
            except OSError:
                return
            with conn:
                state["requests"].append(conn.recv(64))
                conn.sendall(b"udp-queries=11,latency=250,unknown=1,")

    t = threading.Thread(target=runner, daemon=True)
    t.start()
    yield state
    stop.set()
    srv.close()
    t.join(2)


def _write_config(tmp_path, body):
    p = tmp_path / "config.yaml"
    p.write_text(body)
    return str(p)


def test_once_collects_into_json_file(tmp_path, pdns_server):
    out = tmp_path / "metrics.jsonl"
    cfg = _write_config(
        tmp_path,
        "logging: {stderr: false}\n"
        "powerdns:\n"
        "  targets:\n"
        "    - Server: local\n"
        "      Socket: ${SOCK}\n"
        "dispatch:\n"
        "  backend: json\n"
        "  config:\n"
        f"    file_path: {out}\n",
    )

    rc = main(["--config", cfg, "--once", "-v", f"SOCK={pdns_server['path']}"])

    assert rc == 0
    assert pdns_server["requests"] == [b"SHOW *\0"]
    lines = [json.loads(line) for line in out.read_text().splitlines()]
    assert "log_start" in lines[0]
    got = [(o["metric_kind"], o["type_instance"], o["values"]) for o in lines[1:]]
    assert got == [("dns_question", "udp", [11]), ("latency", None, [250.0])]
    assert {o["plugin_instance"] for o in lines[1:]} == {"local"}


def test_once_with_failing_target_returns_1(tmp_path, sock_dir):
    cfg = _write_config(
        tmp_path,
        "logging: {stderr: false}\n"
        "powerdns:\n"
        "  timeout_ms: 200\n"
        "  targets:\n"
        f"    - Server: gone\n      Socket: {os.path.join(sock_dir, 'none.sock')}\n"
        "dispatch: {backend: memory}\n",
    )
    assert main(["--config", cfg, "--once"]) == 1


def test_missing_config_returns_1(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "nope.yaml"), "--once"]) == 1
    assert "nope.yaml" in capsys.readouterr().out


def test_invalid_config_returns_1(tmp_path, capsys):
    cfg = _write_config(tmp_path, "powerdns: {interval: -1}\n")
    assert main(["--config", cfg, "--once"]) == 1
    assert "powerdns/interval" in capsys.readouterr().out


def test_unknown_backend_returns_1(tmp_path):
    cfg = _write_config(
        tmp_path, "logging: {stderr: false}\ndispatch: {backend: carbon}\n"
    )
    assert main(["--config", cfg, "--once"]) == 1


def test_sigterm_stops_daemon_with_exit_2(tmp_path, pdns_server):
    cfg = _write_config(
        tmp_path,
        "logging: {stderr: false}\n"
        "powerdns:\n"
        "  interval: 0.05\n"
        "  targets:\n"
        f"    - Server: local\n      Socket: {pdns_server['path']}\n"
        "dispatch: {backend: memory}\n",
    )
    saved = {
        s: signal.getsignal(s)
        for s in (signal.SIGUSR1, signal.SIGHUP, signal.SIGTERM, signal.SIGINT)
    }
    timer = threading.Timer(0.5, os.kill, (os.getpid(), signal.SIGTERM))
    timer.start()
    try:
        rc = main(["--config", cfg])
    finally:
        timer.cancel()
        for s, h in saved.items():
            signal.signal(s, h)
    assert rc == 2
    assert len(pdns_server["requests"]) >= 1
