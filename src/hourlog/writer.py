"""LogWriter protocol: the contract a logging front end writes through."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from hourlog.levels import Level


@runtime_checkable
class LogWriter(Protocol):
    """A write-capable destination. RotatingFileSink is one implementation."""

    def init(self) -> None: ...

    def write(self, message: str, level: Level = Level.INFO) -> int: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...

    def set_level(self, level: Level) -> None: ...

    def get_level(self) -> Level: ...
