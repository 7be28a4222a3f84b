from __future__ import annotations

import json
from pathlib import Path

import pytest

from javabridge.core.global_paths import GlobalPath
from javabridge.util.log import Log, LogFormat, LogLevel


def test_log_writes_console_and_file(monkeypatch, tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(tmp_path)))
    Log.configure(level=LogLevel.INFO, format=LogFormat.KV, console=True, file=True, dev=True)

    log = Log.create({"service": "test.log"})
    log.info("hello", {"value": 7})
    Log.close()

    stderr = capsys.readouterr().err
    text = (tmp_path / "dev.log").read_text(encoding="utf-8")

    assert "msg=hello" in stderr
    assert "service=test.log" in stderr
    assert "value=7" in text


def test_log_supports_json_format(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(tmp_path)))
    Log.configure(level=LogLevel.INFO, format=LogFormat.JSON, console=False, file=True, dev=True)

    log = Log.create({"service": "test.json"})
    log.info("hello world", {"meta": {"k": "v"}})
    Log.close()

    line = (tmp_path / "dev.log").read_text(encoding="utf-8").strip()
    payload = json.loads(line)

    assert payload["level"] == "info"
    assert payload["msg"] == "hello world"
    assert payload["service"] == "test.json"
    assert payload["meta"] == {"k": "v"}


def test_log_level_filters_and_env_override(monkeypatch, capsys) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("JAVABRIDGE_LOG_LEVEL", "warning")
    Log.configure(console=True, file=False)

    log = Log.create({"service": "test.level"})
    log.info("quiet")
    log.warn("loud", {"path": "/a b"})

    stderr = capsys.readouterr().err
    assert "quiet" not in stderr
    assert 'path="/a b"' in stderr


def test_timer_logs_duration(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.DEBUG, console=True, file=False)

    with Log.create({"service": "test.timer"}).time("download", {"artifact": "jdtls"}):
        pass

    lines = capsys.readouterr().err.splitlines()
    assert "status=started" in lines[0]
    assert "status=completed" in lines[1]
    assert "duration=" in lines[1]


@pytest.mark.parametrize("value", ["verbose", "trace"])
def test_log_level_parse_rejects_unknown(value: str) -> None:
    with pytest.raises(ValueError):
        LogLevel.parse(value)


def test_pretty_format(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.INFO, format=LogFormat.parse("PRETTY"), console=True, file=False)

    Log.create({"service": "test.pretty"}).warn("careful", {"artifact": "jdk"})

    assert "WARN careful (service=test.pretty artifact=jdk)" in capsys.readouterr().err
