# engine/scheduler.py

"""Due-time scheduler for the active queue.

Instead of polling, the scheduler keeps exactly one deadline timer armed for
the nearest future due time among the active cards. When it fires it
publishes a tick, reports the cards that are now ready, and arms itself for
the next nearest due time. Any change to the active set must call
``rearm()``, which cancels the pending timer before computing a new one.

States:
    IDLE   - no timer pending (no active cards, or every card already due)
    ARMED  - one timer pending for ``target``
"""

import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence

from .models import Card, now_ms

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    IDLE = "idle"
    ARMED = "armed"


class DeadlineTimer:
    """One-shot timer interface the scheduler drives.

    ``start`` replaces any pending deadline. Implementations call
    ``callback()`` once, from the event loop, after ``delay_ms``.
    """

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        raise NotImplementedError

    def is_active(self) -> bool:
        raise NotImplementedError


def next_due_time(cards: Iterable[Card], now: int) -> Optional[int]:
    """Nearest due time strictly after ``now``, or None."""
    future = [c.next_review_time for c in cards if c.next_review_time > now]
    return min(future) if future else None


class DueScheduler:
    """Arms a single timer for the next card to become due.

    Args:
        source: returns the live list of active cards; read at every re-arm
            and at fire time, so a timer armed for a card that has since been
            deleted simply finds nothing ready.
        timer: the deadline timer to drive.
        clock: wall-clock in epoch milliseconds.
    """

    def __init__(self, source: Callable[[], Sequence[Card]], timer: DeadlineTimer,
                 clock: Callable[[], int] = now_ms):
        self.source = source
        self.timer = timer
        self.clock = clock
        self.state = SchedulerState.IDLE
        self.target: Optional[int] = None
        self._tick_listeners: List[Callable[[int], None]] = []
        self._due_listeners: List[Callable[[List[Card], int], None]] = []

    def on_tick(self, listener: Callable[[int], None]) -> None:
        """Subscribe to ticks: ``listener(now)`` after every real fire."""
        self._tick_listeners.append(listener)

    def on_due(self, listener: Callable[[List[Card], int], None]) -> None:
        """Subscribe to ``listener(ready_cards, now)`` when a fire finds ready cards."""
        self._due_listeners.append(listener)

    def rearm(self, cards: Optional[Sequence[Card]] = None, now: Optional[int] = None) -> Optional[int]:
        """Cancel the pending timer and arm one for the nearest future due time.

        Returns the new target, or None when nothing is left to wait for.
        """
        self._cancel()

        if cards is None:
            cards = self.source()
        if now is None:
            now = self.clock()

        target = next_due_time(cards, now)
        if target is None:
            logger.debug("No future due time, scheduler idle")
            return None

        self.state = SchedulerState.ARMED
        self.target = target
        self.timer.start(max(target - now, 0), self._fire)
        logger.debug("Armed for %d (in %d ms)", target, target - now)
        return target

    def stop(self) -> None:
        """Cancel any pending timer and go idle."""
        self._cancel()

    def _cancel(self) -> None:
        self.timer.cancel()
        self.state = SchedulerState.IDLE
        self.target = None

    def _fire(self) -> None:
        target = self.target
        self.state = SchedulerState.IDLE
        self.target = None

        wake_now = self.clock()
        cards = list(self.source())

        if target is not None and wake_now < target:
            # Platform fired early; wait out the remainder without a tick
            self.rearm(cards, wake_now)
            return

        self._publish_tick(wake_now)

        ready = [c for c in cards if wake_now >= c.next_review_time]
        if ready:
            self._publish_due(ready, wake_now)

        # Listeners may have mutated the store; re-read before arming again
        self.rearm(None, wake_now)

    def _publish_tick(self, now: int) -> None:
        for listener in list(self._tick_listeners):
            try:
                listener(now)
            except Exception:
                logger.exception("Tick listener failed")

    def _publish_due(self, ready: List[Card], now: int) -> None:
        for listener in list(self._due_listeners):
            try:
                listener(ready, now)
            except Exception:
                logger.exception("Due listener failed")
