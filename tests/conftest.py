"""Shared fixtures: controllable wall clock, recording webhook, sink factory."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timedelta

import httpx
import pytest

from hourlog.clock import HourBoundaryClock
from hourlog.logging import shutdown_logging
from hourlog.sink import RotatingFileSink


class FakeTime:
    """Callable returning a settable 'now'."""

    def __init__(self, start: datetime) -> None:
        self.current = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self.current

    def set(self, t: datetime) -> None:
        with self._lock:
            self.current = t

    def advance(self, **kwargs: float) -> None:
        with self._lock:
            self.current = self.current + timedelta(**kwargs)


class RecordingWebhook:
    """httpx transport handler that records every POST body."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []
        self.received = threading.Event()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.received.set()
        return httpx.Response(self.status_code, text="ok")

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture(autouse=True)
def _reset_logging():
    shutdown_logging()
    yield
    shutdown_logging()


@pytest.fixture()
def make_webhook():
    return RecordingWebhook


@pytest.fixture()
def fake_time() -> FakeTime:
    return FakeTime(datetime(2024, 3, 9, 14, 59, 59))


@pytest.fixture()
def manual_clock(fake_time):
    """Clock without a background thread; tests call tick() themselves."""
    clock = HourBoundaryClock(now=fake_time, autostart=False)
    yield clock
    clock.stop()


@pytest.fixture()
def make_sink(tmp_path, fake_time, manual_clock):
    sinks: list[RotatingFileSink] = []

    def _make(**kwargs) -> RotatingFileSink:
        kwargs.setdefault("clock", manual_clock)
        kwargs.setdefault("now", fake_time)
        sink = RotatingFileSink(tmp_path / "logs", **kwargs)
        sink.init()
        sinks.append(sink)
        return sink

    yield _make
    for sink in sinks:
        sink.close()
