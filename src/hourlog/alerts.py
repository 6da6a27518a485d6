"""Best-effort alert delivery to a Slack-compatible webhook.

forward() posts synchronously and raises AlertForwardError on failure.
submit() is what the write path uses: it enqueues onto a bounded queue
drained by a dispatcher thread and never blocks. When the queue is full
the oldest pending alert is dropped, keeping the freshest ones.
"""

from __future__ import annotations

import json
import threading
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any

import httpx

from hourlog.errors import AlertForwardError
from hourlog.logging import get_logger


@dataclass(frozen=True)
class AlertMessage:
    """Webhook body: {"text": ..., "username": ..., "channel": ...}."""

    text: str
    username: str
    channel: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))


class AlertForwarder:
    def __init__(
        self,
        url: str,
        username: str = "hourlog",
        channel: str = "",
        *,
        queue_size: int = 100,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
        autostart: bool = True,
    ) -> None:
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")
        self.url = url
        self.username = username
        self.channel = channel
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._pending: deque[str] = deque(maxlen=queue_size)
        self._cond = threading.Condition()
        self._stopping = False
        self._thread: threading.Thread | None = None
        self._counts = {"submitted": 0, "sent": 0, "failed": 0, "dropped": 0}
        if autostart:
            self.start()

    # -- synchronous path --------------------------------------------------

    def forward(
        self, message: str, username: str | None = None, channel: str | None = None
    ) -> None:
        """POST one alert now. Raises AlertForwardError on any failure."""
        alert = AlertMessage(
            text=message,
            username=self.username if username is None else username,
            channel=self.channel if channel is None else channel,
        )
        try:
            body = alert.to_json()
        except (TypeError, ValueError) as err:
            raise AlertForwardError(f"could not serialize alert: {err}") from err

        try:
            response = self._client.post(
                self.url,
                content=body.encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as err:
            raise AlertForwardError(f"POST {self.url} failed: {err}") from err

        if not response.is_success:
            raise AlertForwardError(
                f"POST {self.url} returned {response.status_code}",
                status_code=response.status_code,
            )

    # -- queued path -------------------------------------------------------

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._dispatch, name="hourlog-alerts", daemon=True
        )
        self._thread.start()

    def submit(self, message: str) -> bool:
        """Queue an alert without blocking. Returns False once stopped."""
        with self._cond:
            if self._stopping:
                return False
            if len(self._pending) == self._pending.maxlen:
                self._counts["dropped"] += 1
                get_logger(__name__).warning(
                    "alert.dropped", reason="queue_full", pending=len(self._pending)
                )
            self._pending.append(message)
            self._counts["submitted"] += 1
            self._cond.notify()
        return True

    def _dispatch(self) -> None:
        while True:
            with self._cond:
                while not self._pending and not self._stopping:
                    self._cond.wait()
                if not self._pending:
                    return
                message = self._pending.popleft()
            self._deliver(message)

    def _deliver(self, message: str) -> None:
        try:
            self.forward(message)
        except AlertForwardError as err:
            with self._cond:
                self._counts["failed"] += 1
            get_logger(__name__).warning(
                "alert.forward_failed", error=str(err), status_code=err.status_code
            )
            return
        except Exception as err:
            with self._cond:
                self._counts["failed"] += 1
            get_logger(__name__).error(
                "alert.forward_failed", error=str(err), exc_info=True
            )
            return
        with self._cond:
            self._counts["sent"] += 1
        get_logger(__name__).debug("alert.sent", url=self.url)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop accepting alerts, drain the queue, and release the client.

        Alerts still pending when `timeout` expires are abandoned.
        """
        with self._cond:
            if self._stopping:
                return
            self._stopping = True
            self._cond.notify_all()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        if self._owns_client and not (self._thread and self._thread.is_alive()):
            self._client.close()

    def stats(self) -> dict[str, Any]:
        with self._cond:
            return {**self._counts, "pending": len(self._pending)}
