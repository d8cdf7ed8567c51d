"""Qt implementation of the scheduler's one-shot deadline timer."""

from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Qt

from ..engine.scheduler import DeadlineTimer

# QTimer intervals are signed 32-bit milliseconds
MAX_INTERVAL_MS = 2 ** 31 - 1


class QtDeadlineTimer(DeadlineTimer):
    """Single-shot precise QTimer; starting it again replaces the old deadline."""

    def __init__(self, parent: Optional[QObject] = None):
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.timeout.connect(self._on_timeout)
        self._callback: Optional[Callable[[], None]] = None

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self._timer.stop()
        self._callback = callback
        self._timer.start(max(0, min(int(delay_ms), MAX_INTERVAL_MS)))

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    def is_active(self) -> bool:
        return self._timer.isActive()

    def _on_timeout(self):
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()
