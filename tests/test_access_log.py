"""Tests for the daily access log: formatting, paths, appends and failures."""
import importlib
import logging
from datetime import date, datetime
from pathlib import Path

import pytest

from remote_access.server import access_log as access_log_module
from remote_access.server import config
from remote_access.server.access_log import (
    AccessLog,
    ConnectResult,
    Disconnect,
    FileTransfer,
    Incoming,
    WriteStatus,
    format_line,
    parse_line,
)
from remote_access.server.logging_config import LOGGER_NAME

NOW = datetime(2024, 3, 1, 14, 22, 5)


def test_format_incoming():
    line = format_line(NOW, Incoming(ip="10.0.0.5", user="alice", method="password"))
    assert line == "[2024-03-01 14:22:05] INCOMING ip=10.0.0.5 user=alice method=password\n"


def test_format_failed_connect_result():
    event = ConnectResult(ip="10.0.0.5", user="alice", method="password", ok=False, msg="bad credentials")
    assert format_line(NOW, event) == (
        "[2024-03-01 14:22:05] CONNECT_RESULT ip=10.0.0.5 user=alice method=password ok=false msg=bad credentials\n"
    )


def test_format_file_transfer_and_disconnect():
    transfer = FileTransfer(ip="192.168.1.2", user="bob", path="C:/docs/report.pdf", success=True)
    disconnect = Disconnect(ip="192.168.1.2", user="bob", reason="peer closed")
    assert format_line(NOW, transfer) == (
        "[2024-03-01 14:22:05] FILE_TRANSFER ip=192.168.1.2 user=bob path=C:/docs/report.pdf success=true\n"
    )
    assert format_line(NOW, disconnect) == (
        "[2024-03-01 14:22:05] DISCONNECT ip=192.168.1.2 user=bob reason=peer closed\n"
    )


def test_timestamp_is_zero_padded():
    line = format_line(datetime(2024, 1, 2, 3, 4, 5, 999999), Disconnect(ip="::1", user="", reason="x"))
    assert line.startswith("[2024-01-02 03:04:05] DISCONNECT ")


def test_values_are_written_verbatim():
    event = ConnectResult(ip="1.2.3.4", user="a b", method="key", ok=True, msg="user=eve ok=false")
    assert format_line(NOW, event).endswith("user=a b method=key ok=true msg=user=eve ok=false\n")


def test_path_layout(tmp_path):
    log = AccessLog(tmp_path)
    expected = tmp_path / "RemoteDesk" / "log" / "access_log" / "remotedesk_2024-03-01.log"
    assert log.resolve_path(NOW) == expected
    assert expected.parent.is_dir()


def test_resolve_path_is_idempotent(access_log):
    first = access_log.resolve_path()
    second = access_log.resolve_path()
    assert first == second
    assert first.parent.is_dir()


def test_date_rollover_starts_new_file(access_log, clock):
    access_log.log_access(Incoming(ip="10.0.0.5", user="alice", method="password"))
    clock.now = datetime(2024, 3, 2, 0, 0, 1)
    access_log.log_access(Disconnect(ip="10.0.0.5", user="alice", reason="timeout"))

    day_one = access_log.path_for(date(2024, 3, 1)).read_text(encoding="utf-8")
    day_two = access_log.path_for(date(2024, 3, 2)).read_text(encoding="utf-8")
    assert day_one == "[2024-03-01 14:22:05] INCOMING ip=10.0.0.5 user=alice method=password\n"
    assert day_two == "[2024-03-02 00:00:01] DISCONNECT ip=10.0.0.5 user=alice reason=timeout\n"


def test_sequential_writes_append_in_order(access_log):
    for i in range(5):
        access_log.log_access(Incoming(ip=f"10.0.0.{i}", user="alice", method="password"))

    lines = access_log.path_for(NOW.date()).read_text(encoding="utf-8").splitlines()
    assert len(lines) == 5
    assert [line.split()[3] for line in lines] == [f"ip=10.0.0.{i}" for i in range(5)]


def test_existing_content_is_never_truncated(access_log):
    path = access_log.resolve_path()
    path.write_text("earlier line\n", encoding="utf-8")
    access_log.log_access(Disconnect(ip="10.0.0.5", user="alice", reason="bye"))
    assert path.read_text(encoding="utf-8").splitlines()[0] == "earlier line"


def test_write_returns_written(access_log):
    result = access_log.write(Incoming(ip="10.0.0.5", user="alice", method="password"))
    assert result.status is WriteStatus.WRITTEN
    assert result.path == access_log.path_for(NOW.date())


def test_unopenable_directory_reports_one_error(tmp_path, caplog, clock):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    log = AccessLog(blocker, clock=clock)

    caplog.set_level(logging.ERROR, logger=LOGGER_NAME)
    assert log.log_access(Incoming(ip="10.0.0.5", user="alice", method="password")) is None

    errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert len(errors) == 1
    assert "Failed to open access log file" in errors[0].getMessage()
    assert log.write(Incoming(ip="10.0.0.5", user="alice", method="password")).status is WriteStatus.OPEN_FAILED


class _FullDiskHandle:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def write(self, data):
        raise OSError(28, "No space left on device")


def test_write_failure_is_silent(access_log, caplog, monkeypatch):
    monkeypatch.setattr(access_log_module, "open", lambda *a, **kw: _FullDiskHandle(), raising=False)
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)

    event = Disconnect(ip="10.0.0.5", user="alice", reason="bye")
    assert access_log.write(event).status is WriteStatus.WRITE_FAILED
    access_log.log_access(event)
    assert caplog.records == []


def test_parse_line_restores_event():
    record = parse_line(
        "[2024-03-01 14:22:05] CONNECT_RESULT ip=10.0.0.5 user=alice method=password ok=false msg=bad credentials\n"
    )
    assert record.timestamp == NOW
    assert record.kind == "CONNECT_RESULT"
    assert record.event == ConnectResult(
        ip="10.0.0.5", user="alice", method="password", ok=False, msg="bad credentials"
    )


@pytest.mark.parametrize(
    "line",
    [
        "",
        "garbage",
        "[2024-03-01 14:22:05] LOGIN ip=1 user=2",
        "[2024-03-01 14:22:05] FILE_TRANSFER ip=1 user=2 path=x success=maybe",
        "[2024-03-01 14:22:05] DISCONNECT ip=1 reason=x",
    ],
)
def test_parse_line_rejects_malformed(line):
    with pytest.raises(ValueError):
        parse_line(line)


def test_read_returns_records_and_skips_broken_lines(access_log, caplog):
    access_log.log_access(FileTransfer(ip="10.0.0.5", user="alice", path="a.txt", success=True))
    access_log.log_access(Disconnect(ip="10.0.0.5", user="alice", reason="line one\nline two"))

    caplog.set_level(logging.WARNING, logger=LOGGER_NAME)
    records = access_log.read(NOW.date())

    assert [r.kind for r in records] == ["FILE_TRANSFER", "DISCONNECT"]
    assert records[0].event.success is True
    assert records[1].event.reason == "line one"
    assert any("ACCESS_LOG_MALFORMED" in r.getMessage() for r in caplog.records)


def test_read_missing_day_is_empty(access_log):
    assert access_log.read(date(1999, 12, 31)) == []


def test_lone_surrogate_does_not_reach_caller(access_log):
    event = FileTransfer(ip="1.2.3.4", user="bob", path="r\udce9sumé.txt", success=True)
    assert access_log.log_access(event) is None

    raw = access_log.path_for(NOW.date()).read_bytes()
    assert raw == (
        "[2024-03-01 14:22:05] FILE_TRANSFER ip=1.2.3.4 user=bob path=r\\udce9sumé.txt success=true\n"
    ).encode("utf-8")


def test_module_entry_point_uses_default_log(tmp_path, clock, monkeypatch):
    log = AccessLog(tmp_path, clock=clock)
    monkeypatch.setattr(access_log_module, "default_access_log", log)

    assert access_log_module.get_access_log() is log
    access_log_module.log_access(Disconnect(ip="10.0.0.5", user="alice", reason="bye"))
    assert log.path_for(NOW.date()).read_text(encoding="utf-8") == (
        "[2024-03-01 14:22:05] DISCONNECT ip=10.0.0.5 user=alice reason=bye\n"
    )


@pytest.fixture
def reload_config(monkeypatch):
    """Reload the configuration module, restoring it after the test"""
    yield lambda: importlib.reload(config)
    monkeypatch.undo()
    importlib.reload(config)


def test_access_log_root_defaults_to_cwd_when_unset(tmp_path, monkeypatch, reload_config):
    monkeypatch.delenv("LOCALAPPDATA", raising=False)
    monkeypatch.chdir(tmp_path)
    assert reload_config().ACCESS_LOG_ROOT == Path.cwd()


def test_access_log_root_defaults_to_cwd_when_empty(tmp_path, monkeypatch, reload_config):
    monkeypatch.setenv("LOCALAPPDATA", "")
    monkeypatch.chdir(tmp_path)
    assert reload_config().ACCESS_LOG_ROOT == Path.cwd()


def test_access_log_root_follows_localappdata(tmp_path, monkeypatch, reload_config):
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path / "AppData" / "Local"))
    reloaded = reload_config()
    assert reloaded.ACCESS_LOG_ROOT == tmp_path / "AppData" / "Local"
    assert reloaded.FILES_DIR == tmp_path / "AppData" / "Local" / "RemoteDesk" / "files"
