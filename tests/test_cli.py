"""Tests for the command-line entry point."""

import logging
import os
import tempfile

import pytest

from ethtool_stats import __version__
from ethtool_stats.cli import main

NO_CONFIG = ["--config", "/tmp/nonexistent_ethtool_stats.yaml"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("ETHTOOL_STATS_"):
            monkeypatch.delenv(key)


def test_version(capsys):
    assert main(["--version"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == f"ethtool-stats {__version__}"
    assert out[1].startswith("  commit: ")
    assert out[2].startswith("  built:  ")


def test_version_ignores_missing_endpoint(capsys):
    assert main(["--version", *NO_CONFIG]) == 0


def test_missing_endpoint(capsys):
    assert main(NO_CONFIG) == 1
    assert "--prom" in capsys.readouterr().out


def test_invalid_endpoint(capsys):
    rc = main([*NO_CONFIG, "--prom", "not-a-url", "--once", "--stats-backend", "netio"])
    assert rc == 1
    assert "absolute" in capsys.readouterr().err


def test_invalid_interval(capsys):
    rc = main([*NO_CONFIG, "--prom", "http://localhost:9090/api/v1/write", "--interval", "0"])
    assert rc == 1


def test_once_with_unreadable_neighbor_table():
    """A discovery failure is logged, not fatal; --once exits cleanly."""
    rc = main([
        *NO_CONFIG,
        "--prom", "http://127.0.0.1:9/api/v1/write",
        "--neighbor-table", "/nonexistent/arp",
        "--stats-backend", "netio",
        "--once",
    ])
    assert rc == 0


def test_dry_run_prints_counters(capsys):
    with tempfile.NamedTemporaryFile("w", suffix=".arp", delete=False) as fh:
        fh.write("IP address HW type Flags HW address Mask Device\n")
        fh.write("127.0.0.2 0x1 0x2 00:00:00:00:00:00 * nosuchif0\n")
        path = fh.name
    try:
        rc = main([*NO_CONFIG, "--dry-run", "--stats-backend", "netio", "--neighbor-table", path])
        assert rc == 0
        assert "no interfaces reported counters" in capsys.readouterr().out
    finally:
        os.unlink(path)


def test_stats_backend_init_failure_is_fatal(monkeypatch, caplog):
    from ethtool_stats.collector import manager
    from ethtool_stats.errors import StatsProviderInitError

    def broken_provider(_config):
        raise StatsProviderInitError("cannot open ethtool control socket: [Errno 13] Permission denied")

    monkeypatch.setattr(manager, "create_stats_provider", broken_provider)

    rc = main([*NO_CONFIG, "--prom", "http://127.0.0.1:9/api/v1/write", "--once"])

    assert rc == 1
    critical = [r for r in caplog.records if r.levelno == logging.CRITICAL]
    assert len(critical) == 1
    assert "control socket" in critical[0].getMessage()


def test_ethtool_socket_failure_is_fatal(monkeypatch, caplog):
    from ethtool_stats.collector import ethtool

    def no_socket(*_args, **_kwargs):
        raise OSError(97, "Address family not supported by protocol")

    monkeypatch.setattr(ethtool.socket, "socket", no_socket)

    rc = main([*NO_CONFIG, "--prom", "http://127.0.0.1:9/api/v1/write", "--once"])

    assert rc == 1
    assert any(r.levelno == logging.CRITICAL for r in caplog.records)


def test_yaml_with_string_interval(tmp_path, capsys):
    cfg = tmp_path / "ethtool_stats.yaml"
    cfg.write_text("scheduler:\n  interval_seconds: soon\n")

    assert main(["--config", str(cfg), "--prom", "http://127.0.0.1:9/api/v1/write"]) == 1
    assert "interval_seconds" in capsys.readouterr().err
