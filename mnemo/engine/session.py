"""Glue between the card store, the due-time scheduler, the queue and the alarm.

Data flows one way: a store mutation re-arms the scheduler and refreshes the
queue; a scheduler fire samples the clock, refreshes the queue and starts the
alarm. Review actions go back into the store.
"""

import logging
from typing import Callable, List, Optional

from .alarm import AlarmSink
from .models import Card
from .queue import QueueView, build_queue
from .scheduler import DueScheduler
from .store import CardStore

logger = logging.getLogger(__name__)


class QueueSession:
    """Keeps the active-queue view current and rings when cards come due.

    The scheduler always watches every active card. The folder filter only
    narrows what the queue view shows.
    """

    def __init__(self, store: CardStore, scheduler: DueScheduler, alarm: AlarmSink,
                 clock: Optional[Callable[[], int]] = None):
        self.store = store
        self.scheduler = scheduler
        self.alarm = alarm
        self.clock = clock or scheduler.clock
        self.folder_id: Optional[str] = None
        self.now = self.clock()
        self._view_listeners: List[Callable[[QueueView], None]] = []

        store.add_listener(self._on_store_changed)
        scheduler.on_tick(self._on_tick)
        scheduler.on_due(self._on_due)

    def on_view_changed(self, listener: Callable[[QueueView], None]) -> None:
        self._view_listeners.append(listener)

    @property
    def view(self) -> QueueView:
        return build_queue(self.store.cards, self.now, self.folder_id)

    def start(self) -> None:
        """Arm for the loaded cards and publish the first view."""
        self.resync()

    def resync(self) -> None:
        """Re-sample the clock and re-arm (after mutations, or on foreground regain)."""
        self.now = self.clock()
        self.scheduler.rearm(self.store.active_cards(), self.now)
        self._publish()

    def set_folder(self, folder_id: Optional[str]) -> None:
        if folder_id and self.store.get_folder(folder_id) is None:
            folder_id = None
        self.folder_id = folder_id
        self.resync()

    def review(self, card_id: str) -> bool:
        """Acknowledge a review: silence the alarm and move the card up a rung."""
        self.alarm.stop()
        return self.store.acknowledge_review(card_id, self.clock())

    def user_interacted(self) -> None:
        self.alarm.stop()

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.alarm.stop()

    def _on_store_changed(self, store: CardStore) -> None:
        if self.folder_id and store.get_folder(self.folder_id) is None:
            self.folder_id = None
        self.resync()

    def _on_tick(self, now: int) -> None:
        self.now = now
        self._publish()

    def _on_due(self, ready: List[Card], now: int) -> None:
        logger.info("%d card(s) ready for review", len(ready))
        self.alarm.start()

    def _publish(self) -> None:
        view = self.view
        for listener in list(self._view_listeners):
            try:
                listener(view)
            except Exception:
                logger.exception("Queue view listener failed")
