"""Spaced repetition ladder for the active queue.

Every successful review moves a card one rung up a fixed ladder of delays.
There is no lapse handling and no mastered state: a card stays on the last
rung until it is deactivated or deleted.
"""

from typing import Tuple

SECOND = 1000
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE
DAY = 24 * HOUR

# Review delays in milliseconds, indexed by interval_index
INTERVALS = (
    5 * SECOND,
    25 * SECOND,
    2 * MINUTE,
    10 * MINUTE,
    1 * HOUR,
    5 * HOUR,
    1 * DAY,
)

LABELS = ("5s", "25s", "2m", "10m", "1h", "5h", "1d")

LAST_INDEX = len(INTERVALS) - 1


def clamp_index(interval_index: int) -> int:
    """Clamp an interval index to the ladder."""
    return max(0, min(int(interval_index), LAST_INDEX))


def advance(interval_index: int) -> Tuple[int, int]:
    """Return (next_interval_index, delay_ms) after a successful review.

    Saturates at the last rung, so calling it repeatedly on the last rung
    keeps returning the longest delay.
    """
    next_index = min(clamp_index(interval_index) + 1, LAST_INDEX)
    return next_index, INTERVALS[next_index]


def first_due(now: int) -> int:
    """Due time of a card activated at ``now``."""
    return now + INTERVALS[0]


def next_label(interval_index: int) -> str:
    """Label of the rung a review would move the card to, e.g. '25s'."""
    next_index, _ = advance(interval_index)
    return LABELS[next_index]
