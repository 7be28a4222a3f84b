"""Structured logging with console and file sinks.

Loggers are tagged with a ``service`` name and emit one line per event in
key/value, JSON or pretty format. Nothing is written until ``Log.configure``
enables a sink, so library callers stay silent by default::

    log = Log.create({"service": "artifact.store"})
    log.info("using local install", {"artifact": "jdtls", "path": path})
    with log.time("download", {"artifact": "jdk"}):
        ...
"""

import json
import os
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO

from ..core.global_paths import GlobalPath

KEEP_LOG_FILES = 10


class LogLevel(str, Enum):
    """Log severity levels, lowest first."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        return list(LogLevel).index(self)

    @classmethod
    def parse(cls, value: Optional[str]) -> "LogLevel":
        if value is None:
            return cls.INFO
        text = value.strip().upper()
        if text == "WARNING":
            text = "WARN"
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"invalid log level: {value}") from None


class LogFormat(str, Enum):
    """Log line format."""

    KV = "kv"
    JSON = "json"
    PRETTY = "pretty"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LogFormat":
        if value is None:
            return cls.KV
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"invalid log format: {value}") from None


@dataclass
class _Sinks:
    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.KV
    console: bool = False
    path: Optional[Path] = None
    handle: Optional[TextIO] = None


_sinks = _Sinks()
_last_event = time.monotonic()

# Keys every record carries; the rest are tags
_RESERVED = ("time", "delta_ms", "level", "msg")


def _describe(error: BaseException) -> str:
    parts = [str(error)]
    cause = error.__cause__
    while cause is not None and len(parts) < 10:
        parts.append(str(cause))
        cause = cause.__cause__
    return " Caused by: ".join(parts)


def _plain(value: Any) -> Any:
    if isinstance(value, BaseException):
        return _describe(value)
    if value is None or isinstance(value, (bool, int, float, dict, list, tuple)):
        return value
    return str(value)


def _kv_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    text = str(value)
    if not text or "=" in text or any(ch.isspace() for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


def _tags_text(record: Dict[str, Any]) -> str:
    return " ".join(f"{key}={_kv_value(value)}" for key, value in record.items() if key not in _RESERVED)


def _format_kv(record: Dict[str, Any]) -> str:
    head = [record["time"], f"+{record['delta_ms']}ms", f"level={record['level']}", f"msg={_kv_value(record['msg'])}"]
    tags = _tags_text(record)
    return " ".join(head + ([tags] if tags else []))


def _format_json(record: Dict[str, Any]) -> str:
    return json.dumps(record, ensure_ascii=False, separators=(",", ":"))


def _format_pretty(record: Dict[str, Any]) -> str:
    tags = _tags_text(record)
    suffix = f" ({tags})" if tags else ""
    return f"{record['time']} {record['level'].upper()} {record['msg'] or ''}{suffix} +{record['delta_ms']}ms"


_FORMATTERS: Dict[LogFormat, Callable[[Dict[str, Any]], str]] = {
    LogFormat.KV: _format_kv,
    LogFormat.JSON: _format_json,
    LogFormat.PRETTY: _format_pretty,
}


class LogTimer:
    """Context manager logging how long a block took."""

    def __init__(self, logger: "Logger", message: str, extra: Dict[str, Any]):
        self.logger = logger
        self.message = message
        self.extra = extra
        self.started = time.monotonic()

    def stop(self) -> None:
        elapsed = int((time.monotonic() - self.started) * 1000)
        self.logger.info(self.message, {**self.extra, "status": "completed", "duration": elapsed})

    def __enter__(self) -> "LogTimer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()


class Logger:
    """Tagged logger; ``extra`` tags are merged over the logger's own."""

    def __init__(self, tags: Optional[Dict[str, Any]] = None):
        self.tags = tags or {}

    def _record(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        global _last_event

        now = time.monotonic()
        delta_ms = int((now - _last_event) * 1000)
        _last_event = now

        record = {
            "time": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "delta_ms": delta_ms,
            "level": level.value.lower(),
            "msg": _plain(message),
        }
        for key, value in {**self.tags, **(extra or {})}.items():
            if value is not None:
                record[key] = _plain(value)
        return record

    def _emit(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> None:
        if level.rank < _sinks.level.rank:
            return
        if not _sinks.console and _sinks.handle is None:
            return

        line = _FORMATTERS[_sinks.format](self._record(level, message, extra)) + "\n"
        if _sinks.console:
            sys.stderr.write(line)
            sys.stderr.flush()
        if _sinks.handle is not None:
            _sinks.handle.write(line)
            _sinks.handle.flush()

    def debug(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.DEBUG, message, extra)

    def info(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.INFO, message, extra)

    def warn(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.WARN, message, extra)

    def error(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.ERROR, message, extra)

    def time(self, message: str, extra: Optional[Dict[str, Any]] = None) -> LogTimer:
        """Log ``message`` as started now and as completed when the block exits."""
        extra = extra or {}
        self.info(message, {**extra, "status": "started"})
        return LogTimer(self, message, extra)


class Log:
    """Logger factory and sink configuration."""

    _loggers: Dict[str, Logger] = {}

    @classmethod
    def create(cls, tags: Optional[Dict[str, Any]] = None) -> Logger:
        """Return a logger; loggers with a string ``service`` tag are shared."""
        tags = tags or {}
        service = tags.get("service")
        if not isinstance(service, str) or not service:
            return Logger(tags=tags)
        if service not in cls._loggers:
            cls._loggers[service] = Logger(tags=tags)
        return cls._loggers[service]

    @classmethod
    def configure(
        cls,
        *,
        level: Optional[LogLevel] = None,
        format: Optional[LogFormat] = None,
        console: Optional[bool] = None,
        file: Optional[bool] = None,
        dev: bool = False,
    ) -> None:
        """Set the level, format and sinks.

        ``JAVABRIDGE_LOG_LEVEL`` applies when no explicit level is given. The
        file sink (on unless ``file=False``) writes ``<workdir>/log/<stamp>.log``,
        or ``dev.log`` when ``dev`` is set.
        """
        env_level = os.environ.get("JAVABRIDGE_LOG_LEVEL")
        if level is None and env_level:
            level = LogLevel.parse(env_level)
        if level is not None:
            _sinks.level = level
        if format is not None:
            _sinks.format = format
        if console is not None:
            _sinks.console = console

        cls.close()
        _sinks.path = None
        if file is False:
            return

        log_dir = Path(GlobalPath.log())
        log_dir.mkdir(parents=True, exist_ok=True)
        cls._rotate(log_dir)
        name = "dev.log" if dev else datetime.now().strftime("%Y-%m-%dT%H%M%S") + ".log"
        _sinks.path = log_dir / name
        _sinks.handle = _sinks.path.open("w", encoding="utf-8")

    @classmethod
    def _rotate(cls, log_dir: Path) -> None:
        stamped = sorted(log_dir.glob("????-??-??T??????.log"), key=lambda p: p.stat().st_mtime)
        for old in stamped[:-KEEP_LOG_FILES]:
            old.unlink(missing_ok=True)

    @classmethod
    def close(cls) -> None:
        if _sinks.handle is not None:
            _sinks.handle.close()
            _sinks.handle = None
