"""Sorted presentation of the active queue."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .models import Card


def format_time_left(target: int, now: int) -> Optional[str]:
    """Countdown until ``target``, or None once it is due.

    >= 1h renders "Hh MMm", >= 1m renders "Mm SSs", otherwise "Ss".
    """
    diff = target - now
    if diff <= 0:
        return None

    total_seconds = diff // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    if hours > 0:
        return f"{hours}h {minutes:02d}m"
    if minutes > 0:
        return f"{minutes}m {seconds:02d}s"
    return f"{seconds}s"


@dataclass
class QueueView:
    """Active cards ordered ready-first, then soonest due."""

    now: int
    cards: List[Card] = field(default_factory=list)
    due_count: int = 0

    @property
    def total(self) -> int:
        return len(self.cards)

    def time_left(self, card: Card) -> Optional[str]:
        return format_time_left(card.next_review_time, self.now)

    def is_ready(self, card: Card) -> bool:
        return self.now >= card.next_review_time


def build_queue(cards: Iterable[Card], now: int, folder_id: Optional[str] = None) -> QueueView:
    """Filter to active cards (optionally one folder) and sort them.

    The sort is stable, so cards sharing a due time keep their store order
    and do not swap places between refreshes.
    """
    active = [c for c in cards if c.is_active]
    if folder_id:
        active = [c for c in active if c.folder_id == folder_id]

    ordered = sorted(active, key=lambda c: (now < c.next_review_time, c.next_review_time))
    due_count = sum(1 for c in ordered if now >= c.next_review_time)
    return QueueView(now=now, cards=ordered, due_count=due_count)
