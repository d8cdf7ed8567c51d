"""Tests for the repeating alarm and its notification."""

import pytest

from conftest import FakeClock, FakeNotifier, FakeTimer, FakeTonePlayer
from mnemo.engine.alarm import AlarmSink, NOTIFY_BODY, NOTIFY_TITLE


@pytest.fixture
def parts():
    return FakeTonePlayer(), FakeTimer(), FakeClock(100.0)


def make(parts, **kwargs):
    player, timer, clock = parts
    return AlarmSink(player, timer, clock=clock, **kwargs)


def test_start_queues_first_note_shortly(parts):
    player, timer, _ = parts
    alarm = make(parts)

    assert alarm.start()
    assert alarm.is_sounding
    assert player.scheduled == [pytest.approx(100.1)]
    assert timer.delay == AlarmSink.PUMP_INTERVAL_MS


def test_start_while_sounding_is_noop(parts):
    player, _, _ = parts
    alarm = make(parts)
    alarm.start()
    assert not alarm.start()
    assert len(player.scheduled) == 1


def test_pump_keeps_cadence(parts):
    player, timer, clock = parts
    alarm = make(parts)
    alarm.start()

    for _ in range(10):
        clock.advance(0.5)
        timer.fire()

    # 5 seconds in, lookahead 1.5s: notes at +0.1, +2.6, +5.1
    assert player.scheduled == [pytest.approx(t) for t in (100.1, 102.6, 105.1)]


def test_delayed_pump_does_not_skip_notes(parts):
    player, timer, clock = parts
    alarm = make(parts)
    alarm.start()

    clock.advance(6.0)
    timer.fire()
    assert player.scheduled == [pytest.approx(t) for t in (100.1, 102.6, 105.1)]
    assert alarm.next_note_time == pytest.approx(107.6)


def test_stop_is_idempotent_and_silences(parts):
    player, timer, _ = parts
    alarm = make(parts)
    alarm.stop()
    assert player.cancelled == 0

    alarm.start()
    alarm.stop()
    alarm.stop()
    assert not alarm.is_sounding
    assert player.cancelled == 1
    assert not timer.is_active()


def test_restart_after_stop(parts):
    player, _, clock = parts
    alarm = make(parts)
    alarm.start()
    alarm.stop()
    clock.advance(10)
    assert alarm.start()
    assert player.scheduled[-1] == pytest.approx(110.1)


def test_notifies_once_when_hidden(parts):
    notifier = FakeNotifier()
    alarm = make(parts, notifier=notifier, is_hidden=lambda: True)
    player, timer, clock = parts

    alarm.start()
    clock.advance(3)
    timer.fire()
    assert notifier.sent == [(NOTIFY_TITLE, NOTIFY_BODY)]


def test_no_notification_when_visible_or_denied(parts):
    visible = FakeNotifier()
    make(parts, notifier=visible, is_hidden=lambda: False).start()
    assert visible.sent == []

    denied = FakeNotifier(granted=False)
    make(parts, notifier=denied, is_hidden=lambda: True).start()
    assert denied.sent == []


def test_notification_failure_does_not_stop_alarm(parts):
    class BrokenNotifier(FakeNotifier):
        def notify(self, title, body):
            raise RuntimeError("no tray")

    alarm = make(parts, notifier=BrokenNotifier(), is_hidden=lambda: True)
    assert alarm.start()
    assert alarm.is_sounding
