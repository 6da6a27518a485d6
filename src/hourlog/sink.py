"""Hourly rotating file sink.

One file per wall-clock hour, named <prefix>_<YYYY-MM-DD>_<HH>.log, plus a
`text.log` symlink that always resolves to the active file.

Rotation is lazy: the clock only signals that an hour boundary passed, and
the next write() performs the switch. A sink with no writers for several
hours keeps its old file open until somebody writes again.

The alert threshold gates alert forwarding only. Every message handed to
write() lands in the file regardless of its level; filtering what gets
logged is the caller's job.
"""

from __future__ import annotations

import os
import threading
from datetime import datetime
from pathlib import Path
from typing import IO, Callable

from hourlog.alerts import AlertForwarder
from hourlog.clock import HourBoundaryClock
from hourlog.config import SinkConfig
from hourlog.errors import RotationError, SinkClosedError, SinkInitError
from hourlog.levels import Level, parse_level
from hourlog.logging import get_logger


def hourly_file_name(prefix: str, t: datetime) -> str:
    return f"{prefix}_{t:%Y-%m-%d_%H}.log"


class RotatingFileSink:
    """Owns the active hourly file and the current-log link.

    A single lock serializes writes and rotation, so no writer ever sees a
    file that has been closed but not yet replaced.
    """

    def __init__(
        self,
        directory: str | Path = "",
        *,
        prefix: str = "text",
        link_name: str = "text.log",
        level: Level | str | int = Level.ERROR,
        forwarder: AlertForwarder | None = None,
        clock: HourBoundaryClock | None = None,
        clock_interval: float = 1.0,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._directory = Path(directory or ".")
        self._prefix = prefix
        self._link_name = link_name
        self._level = parse_level(level)
        self._forwarder = forwarder
        self._owns_forwarder = False
        self._clock = clock
        self._owns_clock = clock is None
        self._clock_interval = clock_interval
        self._now = now or datetime.now

        self._lock = threading.Lock()
        self._fd: IO[str] | None = None
        self._path: Path | None = None
        self._closed = False
        self._rotation_pending = False

    @classmethod
    def from_config(
        cls, config: SinkConfig, now: Callable[[], datetime] | None = None
    ) -> RotatingFileSink:
        """Build a sink (and its forwarder, if a webhook is configured)."""
        forwarder = None
        if config.alerts_enabled:
            forwarder = AlertForwarder(
                config.webhook_url,  # type: ignore[arg-type]
                username=config.bot_name,
                channel=config.channel,
                queue_size=config.alert_queue_size,
                timeout=config.alert_timeout,
            )
        sink = cls(
            config.directory,
            prefix=config.prefix,
            link_name=config.link_name,
            level=config.alert_level,
            forwarder=forwarder,
            clock_interval=config.clock_interval,
            now=now,
        )
        sink._owns_forwarder = forwarder is not None
        return sink

    # -- properties --------------------------------------------------------

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def current_path(self) -> Path | None:
        return self._path

    @property
    def link_path(self) -> Path:
        return self._directory / self._link_name

    @property
    def closed(self) -> bool:
        return self._closed

    def set_level(self, level: Level | str | int) -> None:
        """Set the alert threshold. Does not filter writes."""
        self._level = parse_level(level)

    def get_level(self) -> Level:
        return self._level

    # -- lifecycle ---------------------------------------------------------

    def init(self) -> None:
        """Create the directory, open this hour's file and point the link at it.

        Calling init() again replaces the active file. Raises SinkInitError
        if the directory or file cannot be prepared.
        """
        with self._lock:
            if self._closed:
                raise SinkClosedError("init() on a closed sink")
            self._directory = Path(os.path.abspath(self._directory))
            path, fd, opened_at = self._open_current()
            self._install(path, fd)
            self._rotation_pending = False
            if self._clock is None:
                self._clock = HourBoundaryClock(
                    interval=self._clock_interval, now=self._now, start=opened_at
                )
            else:
                self._clock.rebase(opened_at)
        get_logger(__name__).info("sink.initialized", path=str(path))

    def write(self, message: str, level: Level | int = Level.INFO) -> int:
        """Write `message` verbatim to the active file.

        Messages at or above the alert threshold are also queued for the
        webhook; alert delivery never affects the outcome of the write.
        Storage errors propagate as OSError. If a pending rotation could
        not open the next file, the message is written to the current file
        and RotationError is raised afterwards.
        """
        rotation_error: SinkInitError | None = None
        with self._lock:
            if self._closed:
                raise SinkClosedError("write() on a closed sink")
            if self._fd is None:
                raise SinkInitError("sink is not initialized; call init() first")
            if level >= self._level:
                self._alert(message)
            boundary = self._clock.poll() if self._clock is not None else None
            if boundary is not None or self._rotation_pending:
                rotation_error = self._rotate()
            written = self._fd.write(message)
            self._fd.flush()

        if rotation_error is not None:
            raise RotationError(
                f"could not rotate away from {self._path}: {rotation_error}"
            ) from rotation_error
        return written

    def flush(self) -> None:
        """Force buffered data to stable storage."""
        with self._lock:
            if self._closed:
                raise SinkClosedError("flush() on a closed sink")
            if self._fd is None:
                return
            self._fd.flush()
            os.fsync(self._fd.fileno())

    def close(self) -> None:
        """Flush and release the file; stop owned helpers. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            fd, self._fd = self._fd, None
        try:
            if fd is not None:
                try:
                    fd.flush()
                    os.fsync(fd.fileno())
                finally:
                    fd.close()
        finally:
            if self._owns_clock and self._clock is not None:
                self._clock.stop()
            if self._owns_forwarder and self._forwarder is not None:
                self._forwarder.stop()
            get_logger(__name__).info("sink.closed", path=str(self._path))

    def __enter__(self) -> RotatingFileSink:
        if self._fd is None:
            self.init()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- internals (call with _lock held) ----------------------------------

    def _open_current(self) -> tuple[Path, IO[str], datetime]:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise SinkInitError(f"cannot create log directory {self._directory}: {err}") from err

        opened_at = self._now()
        name = hourly_file_name(self._prefix, opened_at)
        path = self._directory / name
        try:
            fd = open(path, "a", encoding="utf-8")
        except OSError as err:
            raise SinkInitError(f"cannot open {path}: {err}") from err
        self._point_link(name)
        return path, fd, opened_at

    def _point_link(self, name: str) -> None:
        """Swap the link in one rename so it never dangles."""
        link = self.link_path
        tmp = self._directory / f".{self._link_name}.{os.getpid()}.tmp"
        try:
            if tmp.is_symlink() or tmp.exists():
                tmp.unlink()
            os.symlink(name, tmp)
            os.replace(tmp, link)
        except (OSError, NotImplementedError) as err:
            get_logger(__name__).warning(
                "sink.link_failed", link=str(link), target=name, error=str(err)
            )

    def _install(self, path: Path, fd: IO[str]) -> None:
        old = self._fd
        self._fd, self._path = fd, path
        if old is None or old is fd:
            return
        try:
            old.flush()
            os.fsync(old.fileno())
        except OSError as err:
            get_logger(__name__).warning("sink.flush_failed", error=str(err))
        finally:
            old.close()

    def _rotate(self) -> SinkInitError | None:
        previous = self._path
        try:
            path, fd, opened_at = self._open_current()
        except SinkInitError as err:
            self._rotation_pending = True
            get_logger(__name__).error(
                "sink.rotation_failed", path=str(previous), error=str(err)
            )
            return err
        self._install(path, fd)
        self._rotation_pending = False
        if self._clock is not None:
            self._clock.rebase(opened_at)
        get_logger(__name__).info("sink.rotated", previous=str(previous), current=str(path))
        return None

    def _alert(self, message: str) -> None:
        if self._forwarder is None:
            return
        if not self._forwarder.submit(message):
            get_logger(__name__).debug("alert.skipped", reason="forwarder_stopped")
