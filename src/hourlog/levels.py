"""Severity levels used for alert routing."""

from __future__ import annotations

from enum import IntEnum

from hourlog.errors import ConfigError


class Level(IntEnum):
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


_ALIASES = {
    "warn": Level.WARNING,
    "fatal": Level.CRITICAL,
}


def parse_level(value: str | int | Level) -> Level:
    """Coerce a name ("error", "WARN") or number into a Level."""
    if isinstance(value, Level):
        return value
    if isinstance(value, int):
        try:
            return Level(value)
        except ValueError as err:
            raise ConfigError(f"Unknown level: {value!r}") from err
    name = str(value).strip().lower()
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return Level[name.upper()]
    except KeyError as err:
        raise ConfigError(
            f"Unknown level: {value!r}. Available: {[lv.name.lower() for lv in Level]}"
        ) from err
