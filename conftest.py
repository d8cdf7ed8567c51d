"""Shared fakes for the engine tests: a settable clock and a manual timer."""

import pytest

from mnemo.engine.alarm import Notifier, TonePlayer
from mnemo.engine.scheduler import DeadlineTimer


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now += delta
        return self.now


class FakeTimer(DeadlineTimer):
    """Deadline timer fired by hand from the test."""

    def __init__(self):
        self.delay = None
        self.callback = None
        self.starts = []

    def start(self, delay_ms, callback):
        self.delay = delay_ms
        self.callback = callback
        self.starts.append(delay_ms)

    def cancel(self):
        self.delay = None
        self.callback = None

    def is_active(self):
        return self.callback is not None

    def fire(self):
        callback = self.callback
        self.delay = None
        self.callback = None
        assert callback is not None, "timer fired while idle"
        callback()


class FakeTonePlayer(TonePlayer):
    def __init__(self):
        self.scheduled = []
        self.cancelled = 0

    def schedule(self, at):
        self.scheduled.append(at)

    def cancel_all(self):
        self.cancelled += 1


class FakeNotifier(Notifier):
    def __init__(self, granted=True):
        self.granted = granted
        self.sent = []

    def request_permission(self):
        return self.granted

    def permission_granted(self):
        return self.granted

    def notify(self, title, body):
        self.sent.append((title, body))


@pytest.fixture
def clock():
    return FakeClock(0)


@pytest.fixture
def timer():
    return FakeTimer()
