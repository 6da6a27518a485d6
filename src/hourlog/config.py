"""Sink configuration, env-var driven.

All settings have safe defaults. Alerts stay disabled until a webhook
URL is configured.

Priority: explicit argument > env var > YAML file > default.
Env vars use the HOURLOG_{FIELD_NAME} convention (e.g. HOURLOG_DIR=/var/log/app).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from hourlog.errors import ConfigError
from hourlog.levels import Level, parse_level

_ENV_PREFIX = "HOURLOG_"
# Fields whose env var does not follow HOURLOG_{FIELD_NAME}
_ENV_NAMES = {"directory": "HOURLOG_DIR"}


def _int_env(var: str, default: int) -> int:
    raw = os.environ.get(var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ConfigError(f"{var}={raw!r} is not a valid integer") from err


def _float_env(var: str, default: float) -> float:
    raw = os.environ.get(var)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as err:
        raise ConfigError(f"{var}={raw!r} is not a valid number") from err


def _coerce(name: str, value: Any, kind: type) -> Any:
    """Convert a YAML/override value, rejecting bools and non-numeric text."""
    if isinstance(value, bool):
        raise ConfigError(f"{name}={value!r} is not a valid {kind.__name__}")
    try:
        return kind(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{name}={value!r} is not a valid {kind.__name__}") from err


@dataclass
class SinkConfig:
    """Everything the rotating sink and its alert forwarder need."""

    # --- Files ---
    directory: str = field(default_factory=lambda: os.environ.get("HOURLOG_DIR", "./logs"))
    prefix: str = field(default_factory=lambda: os.environ.get("HOURLOG_PREFIX", "text"))
    link_name: str = field(
        default_factory=lambda: os.environ.get("HOURLOG_LINK_NAME", "text.log")
    )
    clock_interval: float = field(
        default_factory=lambda: _float_env("HOURLOG_CLOCK_INTERVAL", 1.0)
    )

    # --- Alerting ---
    webhook_url: str | None = field(
        default_factory=lambda: os.environ.get("HOURLOG_WEBHOOK_URL") or None
    )
    bot_name: str = field(default_factory=lambda: os.environ.get("HOURLOG_BOT_NAME", "hourlog"))
    channel: str = field(default_factory=lambda: os.environ.get("HOURLOG_CHANNEL", ""))
    alert_level: Level = field(
        default_factory=lambda: parse_level(os.environ.get("HOURLOG_ALERT_LEVEL", "error"))
    )
    alert_queue_size: int = field(
        default_factory=lambda: _int_env("HOURLOG_ALERT_QUEUE_SIZE", 100)
    )
    alert_timeout: float = field(
        default_factory=lambda: _float_env("HOURLOG_ALERT_TIMEOUT", 5.0)
    )

    # --- Internal diagnostics logging ---
    log_formatter: str = field(
        default_factory=lambda: os.environ.get("HOURLOG_LOG_FORMATTER", "structlog")
    )  # "structlog" | "stdlib"
    log_destination: str = field(
        default_factory=lambda: os.environ.get("HOURLOG_LOG_DESTINATION", "stderr")
    )  # "stderr" | "jsonl"
    log_level: str = field(
        default_factory=lambda: os.environ.get("HOURLOG_LOG_LEVEL", "WARNING")
    )
    log_format: str = field(
        default_factory=lambda: os.environ.get("HOURLOG_LOG_FORMAT", "console")
    )  # "json" | "console"
    log_path: str | None = field(default_factory=lambda: os.environ.get("HOURLOG_LOG_PATH"))

    def __post_init__(self) -> None:
        self.alert_level = parse_level(self.alert_level)
        self.alert_queue_size = _coerce("alert_queue_size", self.alert_queue_size, int)
        self.alert_timeout = _coerce("alert_timeout", self.alert_timeout, float)
        self.clock_interval = _coerce("clock_interval", self.clock_interval, float)
        if self.alert_queue_size < 1:
            raise ConfigError(f"alert_queue_size must be >= 1, got {self.alert_queue_size}")
        if self.clock_interval <= 0:
            raise ConfigError(f"clock_interval must be > 0, got {self.clock_interval}")

    @property
    def alerts_enabled(self) -> bool:
        return bool(self.webhook_url)

    @classmethod
    def load(cls, path: Path | None = None, **overrides: Any) -> SinkConfig:
        """Load settings from a YAML file, then let env vars and overrides win."""
        file_values: dict[str, Any] = {}
        if path is not None and Path(path).exists():
            raw = yaml.safe_load(Path(path).read_text()) or {}
            if not isinstance(raw, dict):
                raise ConfigError(f"{path}: expected a mapping, got {type(raw).__name__}")
            known = {f.name for f in fields(cls)}
            unknown = sorted(set(raw) - known)
            if unknown:
                raise ConfigError(f"{path}: unknown settings {unknown}")
            file_values = raw

        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name in overrides:
                kwargs[f.name] = overrides[f.name]
            elif _ENV_NAMES.get(f.name, f"{_ENV_PREFIX}{f.name.upper()}") in os.environ:
                continue  # dataclass default_factory reads the env var
            elif f.name in file_values:
                kwargs[f.name] = file_values[f.name]
        return cls(**kwargs)
