"""Audible alarm that keeps ringing until the user shows a sign of life.

The alarm is a self-scheduling tone loop rather than a single sound. A pump
runs every half second and queues double-beeps on a monotonic clock up to
``LOOKAHEAD`` seconds ahead, so pulses stay on cadence even when the pump
itself is delayed.
"""

import logging
import time
from typing import Callable, Optional

from .scheduler import DeadlineTimer

logger = logging.getLogger(__name__)

NOTIFY_TITLE = "Review Time!"
NOTIFY_BODY = "A memory card is ready for review."


class TonePlayer:
    """Plays double-beeps at monotonic times (seconds)."""

    def schedule(self, at: float) -> None:
        raise NotImplementedError

    def cancel_all(self) -> None:
        """Drop queued pulses and silence anything playing."""
        raise NotImplementedError


class Notifier:
    """System notification capability. The default has none."""

    def request_permission(self) -> bool:
        return False

    def permission_granted(self) -> bool:
        return False

    def notify(self, title: str, body: str) -> None:
        pass


class AlarmSink:
    """Owns the "is the alarm sounding" state; start/stop are its only mutators."""

    BEEP_INTERVAL = 2.5
    LOOKAHEAD = 1.5
    START_DELAY = 0.1
    PUMP_INTERVAL_MS = 500

    def __init__(self, player: TonePlayer, timer: DeadlineTimer,
                 clock: Callable[[], float] = time.monotonic,
                 notifier: Optional[Notifier] = None,
                 is_hidden: Callable[[], bool] = lambda: False):
        self.player = player
        self.timer = timer
        self.clock = clock
        self.notifier = notifier or Notifier()
        self.is_hidden = is_hidden
        self.next_note_time = 0.0
        self._sounding = False

    @property
    def is_sounding(self) -> bool:
        return self._sounding

    def start(self) -> bool:
        """Begin ringing. Returns False when already sounding."""
        if self._sounding:
            return False

        self._sounding = True
        self.next_note_time = self.clock() + self.START_DELAY
        logger.info("Alarm started")
        self._pump()
        self._maybe_notify()
        return True

    def stop(self) -> None:
        """Silence immediately. Safe to call when already stopped."""
        if not self._sounding:
            return
        self._sounding = False
        self.timer.cancel()
        self.player.cancel_all()
        logger.info("Alarm stopped")

    def _pump(self) -> None:
        if not self._sounding:
            return

        horizon = self.clock() + self.LOOKAHEAD
        while self.next_note_time < horizon:
            self.player.schedule(self.next_note_time)
            self.next_note_time += self.BEEP_INTERVAL

        self.timer.start(self.PUMP_INTERVAL_MS, self._pump)

    def _maybe_notify(self) -> None:
        # Once per start, never per pulse
        if not self.is_hidden():
            return
        try:
            if self.notifier.permission_granted():
                self.notifier.notify(NOTIFY_TITLE, NOTIFY_BODY)
        except Exception:
            logger.warning("System notification failed", exc_info=True)
