from collections.abc import Iterator
from pathlib import Path

import pytest

from javabridge.core.bus import Bus
from javabridge.util.log import Log, LogFormat, LogLevel


@pytest.fixture(autouse=True)
def bus_context() -> Iterator[None]:
    token = Bus.provide(Bus())
    try:
        yield
    finally:
        Bus.restore(token)


@pytest.fixture(autouse=True)
def workdir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    path = tmp_path / "work"
    monkeypatch.setenv("JAVABRIDGE_WORKDIR", str(path))
    monkeypatch.delenv("JAVABRIDGE_DISABLE_DOWNLOAD", raising=False)
    monkeypatch.delenv("JAVABRIDGE_LOG_LEVEL", raising=False)
    return path


@pytest.fixture(autouse=True)
def _log_teardown() -> Iterator[None]:
    yield
    Log.configure(level=LogLevel.INFO, format=LogFormat.KV, console=False, file=False)
