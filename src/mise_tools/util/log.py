"""Structured, tagged logging with console and file sinks.

Each component gets a logger tagged with its service name::

    log = Log.create({"service": "runner"})
    log.info("mise exited", {"exit_code": 0})

Lines go to stderr and/or a log file in the user log directory, as
key=value pairs, JSON objects or a human-oriented "pretty" form. Only the most
recent log files are kept.
"""

import json
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO

from ..core.global_paths import GlobalPath

MAX_LOG_FILES = 10
LOG_FILE_GLOB = "????-??-??T??????.log"


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return list(LogLevel).index(self)

    @classmethod
    def parse(cls, value: Optional[str]) -> "LogLevel":
        """Level from user input; ``None`` means info and ``warning`` means warn."""
        if value is None:
            return cls.INFO
        text = value.strip().lower()
        try:
            return cls("warn" if text == "warning" else text)
        except ValueError:
            raise ValueError(f"invalid log level: {value}") from None


class LogFormat(str, Enum):
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


def _plain(value: Any) -> Any:
    """Reduce a tag value to something JSON can hold."""
    if isinstance(value, BaseException):
        text = str(value) or type(value).__name__
        if value.__cause__ is not None:
            text += " Caused by: " + _plain(value.__cause__)
        return text
    if value is None or isinstance(value, (dict, list, tuple, int, float, bool)):
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
    # Quote anything that would split or confuse a key=value reader
    if not text or "=" in text or any(ch.isspace() for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


@dataclass
class Record:
    """One log event, before formatting."""
    time: str
    delta_ms: int
    level: LogLevel
    msg: Any
    data: Dict[str, Any]

    def pairs(self) -> str:
        return " ".join(f"{key}={_kv_value(value)}" for key, value in self.data.items())


def _format_kv(record: Record) -> str:
    head = f"{record.time} +{record.delta_ms}ms level={record.level.value} msg={_kv_value(record.msg)}"
    pairs = record.pairs()
    return f"{head} {pairs}" if pairs else head


def _format_json(record: Record) -> str:
    payload = {
        "time": record.time,
        "delta_ms": record.delta_ms,
        "level": record.level.value,
        "msg": record.msg,
        **record.data,
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def _format_pretty(record: Record) -> str:
    pairs = record.pairs()
    suffix = f" ({pairs})" if pairs else ""
    return f"{record.time} {record.level.name} {record.msg or ''}{suffix} +{record.delta_ms}ms"


FORMATTERS: Dict[LogFormat, Callable[[Record], str]] = {
    LogFormat.KV: _format_kv,
    LogFormat.JSON: _format_json,
    LogFormat.PRETTY: _format_pretty,
}


@dataclass
class _Sinks:
    """Process-wide output settings shared by every logger."""
    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.KV
    console: bool = False
    file: bool = False
    dev: bool = False
    path: Optional[str] = None
    handle: Optional[TextIO] = None
    last: float = field(default_factory=time.time)

    def write(self, line: str) -> None:
        if self.console:
            sys.stderr.write(line)
            sys.stderr.flush()
        if self.file and self.handle is not None:
            self.handle.write(line)
            self.handle.flush()


_sinks = _Sinks()


@dataclass
class LogTimer:
    """Context manager that logs how long a block took."""
    logger: "Logger"
    message: str
    extra: Dict[str, Any]
    start_time: float = field(default_factory=time.time)

    def stop(self) -> None:
        duration_ms = int((time.time() - self.start_time) * 1000)
        self.logger.info(self.message, {**self.extra, "status": "completed", "duration": duration_ms})

    def __enter__(self) -> "LogTimer":
        return self

    def __exit__(self, *args) -> None:
        self.stop()


class Logger:
    def __init__(self, tags: Optional[Dict[str, Any]] = None):
        self.tags = tags or {}

    def _emit(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> None:
        if level.rank < _sinks.level.rank:
            return

        now = time.time()
        delta_ms = int((now - _sinks.last) * 1000)
        _sinks.last = now

        merged = {**self.tags, **(extra or {})}
        record = Record(
            time=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            delta_ms=delta_ms,
            level=level,
            msg=_plain(message),
            data={key: _plain(value) for key, value in merged.items() if value is not None},
        )
        _sinks.write(FORMATTERS[_sinks.format](record) + "\n")

    def debug(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.DEBUG, message, extra)

    def info(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.INFO, message, extra)

    def warn(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.WARN, message, extra)

    def error(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.ERROR, message, extra)

    def time(self, message: str, extra: Optional[Dict[str, Any]] = None) -> LogTimer:
        """Log a started line now and a completed line with duration on stop()."""
        extra = extra or {}
        self.info(message, {**extra, "status": "started"})
        return LogTimer(logger=self, message=message, extra=extra)


class Log:
    """Logger factory and sink configuration."""

    _loggers: Dict[str, Logger] = {}

    @classmethod
    def create(cls, tags: Optional[Dict[str, Any]] = None) -> Logger:
        """Logger with ``tags``; loggers with a ``service`` tag are shared per service."""
        tags = tags or {}
        service = tags.get("service")
        if not isinstance(service, str) or not service:
            return Logger(tags=tags)
        return cls._loggers.setdefault(service, Logger(tags=tags))

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
        """Update sink settings. Arguments left as None keep their value.

        Args:
            level: Minimum level to output
            format: Line format
            console: Write to stderr
            file: Write to a log file in the user log directory; an open file
                with the same target is kept
            dev: Write to ``dev.log`` instead of a timestamped file
        """
        for name, value in (("level", level), ("format", format), ("console", console), ("file", file)):
            if value is not None:
                setattr(_sinks, name, value)

        log_dir = Path(GlobalPath.log())
        reopen = _sinks.handle is None or _sinks.dev != dev or Path(_sinks.path or "").parent != log_dir
        if _sinks.file and not reopen:
            # Same target: keep appending to the file already open
            return

        cls.close()
        _sinks.path = None
        if not _sinks.file:
            return

        log_dir.mkdir(parents=True, exist_ok=True)
        name = "dev.log" if dev else datetime.now().strftime("%Y-%m-%dT%H%M%S") + ".log"
        path = log_dir / name
        _sinks.handle = path.open("w", encoding="utf-8")
        _sinks.path = str(path)
        _sinks.dev = dev
        cls._rotate(log_dir)

    @classmethod
    def file(cls) -> str:
        """Current log file path, or an empty string."""
        return _sinks.path or ""

    @classmethod
    def _rotate(cls, log_dir: Path) -> None:
        """Delete all but the newest timestamped log files."""
        files = sorted(log_dir.glob(LOG_FILE_GLOB), key=lambda p: p.stat().st_mtime)
        for old in files[:-MAX_LOG_FILES]:
            old.unlink(missing_ok=True)

    @classmethod
    def close(cls) -> None:
        if _sinks.handle is not None:
            _sinks.handle.close()
            _sinks.handle = None
