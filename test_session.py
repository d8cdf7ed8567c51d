"""End-to-end tests for the queue session: store, scheduler, queue and alarm together."""

import pytest

from conftest import FakeClock, FakeTimer, FakeTonePlayer
from mnemo.engine.alarm import AlarmSink
from mnemo.engine.models import Card
from mnemo.engine.scheduler import DueScheduler, SchedulerState
from mnemo.engine.session import QueueSession
from mnemo.engine.store import CardStore


class Harness:
    def __init__(self):
        self.clock = FakeClock(0)
        self.timer = FakeTimer()
        self.alarm_clock = FakeClock(0.0)
        self.player = FakeTonePlayer()
        self.store = CardStore(clock=self.clock)
        self.scheduler = DueScheduler(self.store.active_cards, self.timer, clock=self.clock)
        self.alarm = AlarmSink(self.player, FakeTimer(), clock=self.alarm_clock)
        self.session = QueueSession(self.store, self.scheduler, self.alarm)
        self.views = []
        self.session.on_view_changed(self.views.append)
        self.session.start()

    def add(self, word, folder_id=None):
        return self.store.add_card(Card(meaning="m", word=word, folder_id=folder_id))

    def fire_at(self, now):
        self.clock.now = now
        self.timer.fire()


@pytest.fixture
def h():
    return Harness()


def test_activate_ring_and_review(h):
    card = h.add("a")
    h.store.activate(card.id)
    assert h.scheduler.target == 5000
    assert h.views[-1].due_count == 0

    h.fire_at(5000)
    assert h.alarm.is_sounding
    assert h.views[-1].due_count == 1

    # Any interaction silences the alarm
    h.clock.now = 5200
    h.session.user_interacted()
    assert not h.alarm.is_sounding

    h.clock.now = 6000
    assert h.session.review(card.id)
    assert card.interval_index == 1
    assert card.next_review_time == 31000
    assert h.scheduler.target == 31000
    assert h.views[-1].due_count == 0


def test_tied_cards_ring_once(h):
    a, b = h.add("a"), h.add("b")
    h.clock.now = -4000
    h.store.activate(a.id)
    h.store.activate(b.id)
    assert h.scheduler.target == 1000

    h.fire_at(1000)
    assert h.views[-1].due_count == 2
    assert h.scheduler.state == SchedulerState.IDLE
    assert len(h.player.scheduled) == 1


def test_folder_filter_does_not_change_what_rings(h):
    food = h.store.create_folder("Food")
    inside = h.add("inside", folder_id=food.id)
    outside = h.add("outside")
    h.store.activate(outside.id)
    h.clock.now = 3000
    h.store.activate(inside.id)

    h.session.set_folder(food.id)
    assert [c.word for c in h.views[-1].cards] == ["inside"]
    # Still armed for the card outside the folder
    assert h.scheduler.target == 5000

    h.fire_at(5000)
    assert h.alarm.is_sounding


def test_deleted_folder_resets_filter(h):
    food = h.store.create_folder("Food")
    h.session.set_folder(food.id)
    h.store.delete_folder(food.id)
    assert h.session.folder_id is None


def test_unknown_folder_means_all(h):
    h.session.set_folder("missing")
    assert h.session.folder_id is None


def test_deleting_due_card_before_fire(h):
    card = h.add("a")
    h.store.activate(card.id)
    h.store.delete(card.id)
    assert h.scheduler.state == SchedulerState.IDLE
    assert not h.timer.is_active()


def test_resync_refreshes_countdowns(h):
    card = h.add("a")
    h.store.activate(card.id)
    h.clock.now = 2000
    h.session.resync()
    assert h.views[-1].time_left(card) == "3s"


def test_shutdown_stops_everything(h):
    card = h.add("a")
    h.store.activate(card.id)
    h.fire_at(5000)
    h.session.shutdown()
    assert not h.alarm.is_sounding
    assert not h.timer.is_active()
