"""Internal diagnostics logging: swappable formatter x destination.

These are the sink's own records (rotations, alert delivery failures),
not the application lines the sink writes to its hourly files.

    LogFormatter   : HOW records are structured (structlog, stdlib)
    LogDestination : WHERE output goes (stderr, JSONL file)

setup_logging(config) composes them and attaches the handler to the
"hourlog" logger only, so the host application's root logger is untouched.

Swapping:
    HOURLOG_LOG_FORMATTER=structlog   (default)
    HOURLOG_LOG_DESTINATION=stderr    (default)
    HOURLOG_LOG_DESTINATION=jsonl     (with HOURLOG_LOG_PATH)
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from hourlog.config import SinkConfig

_ROOT = "hourlog"


@runtime_checkable
class LogFormatter(Protocol):
    """Strategy: how diagnostic records are structured."""

    def setup(self, config: SinkConfig) -> logging.Formatter: ...

    def get_logger(self, name: str, **kwargs: Any) -> Any: ...


@runtime_checkable
class LogDestination(Protocol):
    """Strategy: where formatted diagnostic output goes."""

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler: ...

    def shutdown(self) -> None: ...


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructlogFormatter:
    """structlog processor pipeline bridged onto stdlib handlers."""

    def setup(self, config: SinkConfig) -> logging.Formatter:
        import structlog

        if config.log_format == "console":
            renderer: Any = structlog.dev.ConsoleRenderer(colors=False)
        else:
            renderer = structlog.processors.JSONRenderer()

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.contextvars.merge_contextvars,
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )

        return structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        import structlog

        return structlog.get_logger(name, **kwargs)


class StdlibFormatter:
    """Plain stdlib logging; JSON or console lines."""

    def setup(self, config: SinkConfig) -> logging.Formatter:
        if config.log_format == "console":
            return logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        return _StdlibJsonFormatter()

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        return _StructuredStdlibLogger(logging.getLogger(name))


class _StdlibJsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        d: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        if hasattr(record, "_structured"):
            d.update(record._structured)  # type: ignore[attr-defined]
        if record.exc_info and record.exc_info[1]:
            d["exception"] = self.formatException(record.exc_info)
        return json.dumps(d, default=str)


class _StructuredStdlibLogger:
    """Gives stdlib loggers the structlog kwargs API.

    logger.warning("alert.dropped", pending=12) stores the kwargs on the
    LogRecord so _StdlibJsonFormatter can render them.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(self, level: int, event: str, exc_info: Any = None, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if exc_info is True:
            exc_info = sys.exc_info()
        record = self._logger.makeRecord(
            self._logger.name, level, "(unknown)", 0, event, (), exc_info or None
        )
        record._structured = kwargs  # type: ignore[attr-defined]
        self._logger.handle(record)

    def debug(self, event: str, **kw: Any) -> None:
        self._log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._log(logging.ERROR, event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        kw.setdefault("exc_info", True)
        self._log(logging.ERROR, event, **kw)


# ---------------------------------------------------------------------------
# Destinations
# ---------------------------------------------------------------------------


class StderrDestination:
    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        return handler

    def shutdown(self) -> None:
        pass


class JsonlFileDestination:
    """Append diagnostics to a file, one record per line."""

    def __init__(self, config: SinkConfig) -> None:
        self._path = Path(config.log_path or Path(config.directory) / "hourlog.diag.jsonl")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handler: logging.Handler | None = None

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        self._handler = logging.FileHandler(str(self._path), mode="a", encoding="utf-8")
        self._handler.setFormatter(formatter)
        return self._handler

    def shutdown(self) -> None:
        if self._handler is not None:
            self._handler.close()


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

_FORMATTERS: dict[str, type] = {
    "structlog": StructlogFormatter,
    "stdlib": StdlibFormatter,
}

_DESTINATIONS: dict[str, type] = {
    "stderr": StderrDestination,
    "jsonl": JsonlFileDestination,
}


def register_formatter(name: str, cls: type) -> None:
    """Register a custom log formatter. Call before setup_logging()."""
    _FORMATTERS[name] = cls


def register_destination(name: str, cls: type) -> None:
    """Register a custom log destination. Call before setup_logging()."""
    _DESTINATIONS[name] = cls


_active_formatter: LogFormatter | None = None
_active_destination: LogDestination | None = None


def setup_logging(config: SinkConfig) -> None:
    """Compose formatter x destination from config and wire to the hourlog logger."""
    global _active_formatter, _active_destination

    formatter_cls = _FORMATTERS.get(config.log_formatter)
    if formatter_cls is None:
        raise ValueError(
            f"Unknown log formatter: {config.log_formatter!r}. "
            f"Available: {list(_FORMATTERS)}."
        )
    dest_cls = _DESTINATIONS.get(config.log_destination)
    if dest_cls is None:
        raise ValueError(
            f"Unknown log destination: {config.log_destination!r}. "
            f"Available: {list(_DESTINATIONS)}."
        )

    shutdown_logging()

    formatter = formatter_cls()
    destination = dest_cls(config) if dest_cls is JsonlFileDestination else dest_cls()
    handler = destination.create_handler(formatter.setup(config))
    handler._hourlog_managed = True  # type: ignore[attr-defined]

    logger = logging.getLogger(_ROOT)
    logger.handlers = [h for h in logger.handlers if not getattr(h, "_hourlog_managed", False)]
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, config.log_level.upper(), logging.WARNING))

    _active_formatter = formatter
    _active_destination = destination


def get_logger(name: str = _ROOT, **kwargs: Any) -> Any:
    """Get a logger accepting logger.info("event", key=value) kwargs.

    Before setup_logging() this wraps stdlib so structured kwargs still work.
    """
    if _active_formatter is not None:
        return _active_formatter.get_logger(name, **kwargs)
    return _StructuredStdlibLogger(logging.getLogger(name))


def shutdown_logging() -> None:
    """Detach and close the active destination."""
    global _active_formatter, _active_destination
    if _active_destination is not None:
        _active_destination.shutdown()
    logger = logging.getLogger(_ROOT)
    logger.handlers = [h for h in logger.handlers if not getattr(h, "_hourlog_managed", False)]
    logger.setLevel(logging.NOTSET)
    _active_formatter = None
    _active_destination = None
