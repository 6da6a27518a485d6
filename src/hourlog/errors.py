"""Error hierarchy for hourlog."""

from __future__ import annotations


class HourlogError(Exception):
    """Base class for all hourlog errors."""


class ConfigError(HourlogError):
    """A configuration value could not be parsed."""


class SinkInitError(HourlogError):
    """The log directory or hourly file could not be prepared."""


class SinkClosedError(HourlogError):
    """Operation attempted on a sink after close()."""


class RotationError(HourlogError):
    """Opening the next hourly file failed.

    The message that triggered the rotation was written to the previous
    file, which stays active until a later write rotates successfully.
    """


class AlertForwardError(HourlogError):
    """Delivering an alert to the webhook failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
