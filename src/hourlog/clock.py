"""Hour boundary detection on a background thread.

The clock polls wall-clock time every `interval` seconds and, when the
hour changes, drops a boundary event into a single-slot queue. Sends never
block: if the previous event has not been consumed the new one is
coalesced, since consumers only care that a boundary happened.
"""

from __future__ import annotations

import queue
import threading
from datetime import datetime
from typing import Callable

from hourlog.logging import get_logger


def hour_of(t: datetime) -> datetime:
    """Truncate to the hour. Date is kept so midnight-to-midnight is a change."""
    return t.replace(minute=0, second=0, microsecond=0)


class HourBoundaryClock:
    def __init__(
        self,
        interval: float = 1.0,
        now: Callable[[], datetime] | None = None,
        autostart: bool = True,
        start: datetime | None = None,
    ) -> None:
        self._interval = interval
        self._now = now or datetime.now
        self._hour = hour_of(start or self._now())
        self._events: queue.Queue[datetime] = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_lock = threading.Lock()
        self.coalesced = 0
        if autostart:
            self.start()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._stop.is_set():
            raise RuntimeError("HourBoundaryClock cannot be restarted after stop()")
        if self.running:
            return
        self._thread = threading.Thread(
            target=self._run, name="hourlog-clock", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.tick()

    def tick(self, at: datetime | None = None) -> bool:
        """Observe the time once. Returns True if a boundary was detected."""
        t = at or self._now()
        with self._tick_lock:
            current = hour_of(t)
            if current == self._hour:
                return False
            self._hour = current
            try:
                self._events.put_nowait(t)
                event = "clock.boundary"
            except queue.Full:
                self.coalesced += 1
                event = "clock.coalesced"
        get_logger(__name__).debug(event, hour=current.isoformat())
        return True

    def rebase(self, t: datetime) -> None:
        """Track the hour of `t` from now on and discard any pending event."""
        with self._tick_lock:
            self._hour = hour_of(t)
            self.poll()

    def poll(self) -> datetime | None:
        """Return the pending boundary time, or None. Never blocks."""
        try:
            return self._events.get_nowait()
        except queue.Empty:
            return None

    def stop(self, timeout: float | None = None) -> None:
        """Cancel the background thread. Safe to call more than once."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
