"""Tests for the single-deadline due-time scheduler."""

from mnemo.engine.models import Card, CardStatus
from mnemo.engine.scheduler import DueScheduler, SchedulerState, next_due_time


def active(due, word="w"):
    return Card(meaning="m", word=word, status=CardStatus.ACTIVE, next_review_time=due)


def make(cards, clock, timer):
    scheduler = DueScheduler(lambda: list(cards), timer, clock=clock)
    ticks, dues = [], []
    scheduler.on_tick(ticks.append)
    scheduler.on_due(lambda ready, now: dues.append(([c.word for c in ready], now)))
    return scheduler, ticks, dues


def test_next_due_time_ignores_already_due():
    cards = [active(100), active(500), active(300)]
    assert next_due_time(cards, 200) == 300
    assert next_due_time(cards, 500) is None
    assert next_due_time([], 0) is None


def test_arms_for_nearest_only(clock, timer):
    cards = [active(5000, "a"), active(1000, "b"), active(9000, "c")]
    scheduler, ticks, dues = make(cards, clock, timer)

    assert scheduler.rearm() == 1000
    assert scheduler.state == SchedulerState.ARMED
    assert timer.delay == 1000

    clock.now = 1000
    timer.fire()
    assert ticks == [1000]
    assert dues == [(["b"], 1000)]
    assert scheduler.target == 5000
    assert timer.delay == 4000


def test_idle_when_nothing_in_future(clock, timer):
    clock.now = 10000
    scheduler, ticks, _ = make([active(5000)], clock, timer)

    assert scheduler.rearm() is None
    assert scheduler.state == SchedulerState.IDLE
    assert not timer.is_active()
    assert ticks == []


def test_rearm_picks_up_earlier_card(clock, timer):
    cards = [active(60000)]
    scheduler, _, _ = make(cards, clock, timer)
    scheduler.rearm()

    cards.append(active(5000))
    scheduler.rearm()
    assert scheduler.target == 5000
    assert timer.delay == 5000


def test_stale_fire_after_delete_is_harmless(clock, timer):
    cards = [active(5000, "gone"), active(20000, "kept")]
    scheduler, ticks, dues = make(cards, clock, timer)
    scheduler.rearm()

    # Card removed without a re-arm; the pending deadline still fires
    del cards[0]
    clock.now = 5000
    timer.fire()

    assert ticks == [5000]
    assert dues == []
    assert scheduler.target == 20000


def test_early_wake_rearms_without_tick(clock, timer):
    scheduler, ticks, dues = make([active(5000)], clock, timer)
    scheduler.rearm()

    clock.now = 4990
    timer.fire()
    assert ticks == []
    assert dues == []
    assert scheduler.target == 5000
    assert timer.delay == 10

    clock.now = 5000
    timer.fire()
    assert ticks == [5000]
    assert dues == [(["w"], 5000)]


def test_late_fire_reports_every_ready_card(clock, timer):
    cards = [active(1000, "a"), active(2000, "b"), active(90000, "c")]
    scheduler, ticks, dues = make(cards, clock, timer)
    scheduler.rearm()

    clock.now = 3000
    timer.fire()
    assert dues == [(["a", "b"], 3000)]
    assert scheduler.target == 90000


def test_tied_cards_fire_once(clock, timer):
    scheduler, ticks, dues = make([active(1000, "a"), active(1000, "b")], clock, timer)
    scheduler.rearm()

    clock.now = 1000
    timer.fire()
    assert ticks == [1000]
    assert dues == [(["a", "b"], 1000)]
    assert scheduler.state == SchedulerState.IDLE


def test_at_most_one_pending_deadline(clock, timer):
    cards = [active(5000)]
    scheduler, _, _ = make(cards, clock, timer)
    for _ in range(5):
        scheduler.rearm()
    # Each re-arm replaces the previous deadline
    assert timer.is_active()
    assert scheduler.target == 5000

    scheduler.stop()
    assert not timer.is_active()
    assert scheduler.state == SchedulerState.IDLE


def test_listener_mutation_is_seen_by_next_arm(clock, timer):
    cards = [active(1000)]
    scheduler, _, _ = make(cards, clock, timer)
    scheduler.on_due(lambda ready, now: cards.append(active(now + 25000, "new")))
    scheduler.rearm()

    clock.now = 1000
    timer.fire()
    assert scheduler.target == 26000


def test_failing_listener_is_contained(clock, timer):
    scheduler, ticks, _ = make([active(1000)], clock, timer)

    def broken(now):
        raise ValueError("boom")

    scheduler.on_tick(broken)
    scheduler.rearm()
    clock.now = 1000
    timer.fire()
    assert ticks == [1000]
