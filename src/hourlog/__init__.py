"""hourlog: hourly rotating log files with webhook alerts.

Public API:
    RotatingFileSink  : writes lines into <prefix>_<date>_<hour>.log files
    AlertForwarder    : best-effort Slack-style webhook delivery
    HourBoundaryClock : background hour-change detection
    SinkConfig        : env-var / YAML driven settings
"""

from hourlog.alerts import AlertForwarder, AlertMessage
from hourlog.clock import HourBoundaryClock
from hourlog.config import SinkConfig
from hourlog.errors import (
    AlertForwardError,
    ConfigError,
    HourlogError,
    RotationError,
    SinkClosedError,
    SinkInitError,
)
from hourlog.levels import Level, parse_level
from hourlog.logging import get_logger, setup_logging
from hourlog.sink import RotatingFileSink, hourly_file_name
from hourlog.writer import LogWriter

__all__ = [
    # Sink
    "RotatingFileSink",
    "hourly_file_name",
    "LogWriter",
    # Helpers
    "HourBoundaryClock",
    "AlertForwarder",
    "AlertMessage",
    # Configuration
    "SinkConfig",
    "Level",
    "parse_level",
    # Logging
    "get_logger",
    "setup_logging",
    # Errors
    "HourlogError",
    "ConfigError",
    "SinkInitError",
    "SinkClosedError",
    "RotationError",
    "AlertForwardError",
]
