# engine/store.py

"""In-memory card store: the single source of truth for cards and folders."""

import logging
import re
from typing import Callable, Dict, Iterable, List, Optional

from . import srs
from .models import Card, CardStatus, Folder, now_ms

logger = logging.getLogger(__name__)

Listener = Callable[["CardStore"], None]


class CardStore:
    """Owns all cards and folders and every mutation on them.

    Mutations on a missing id, or on a card in the wrong state, are no-ops
    and return False. Every successful mutation notifies listeners so the
    due-time scheduler can re-arm.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock
        self._cards: List[Card] = []
        self._folders: List[Folder] = []
        self._listeners: List[Listener] = []

    # Listeners

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Card store listener failed")

    # Loading

    def load(self, cards: Iterable[Card], folders: Iterable[Folder]) -> None:
        """Replace the whole collection (used once after reading storage)."""
        self._cards = list(cards)
        self._folders = list(folders)
        self._notify()

    def snapshot(self) -> Dict[str, List[dict]]:
        return {
            "cards": [card.to_dict() for card in self._cards],
            "folders": [folder.to_dict() for folder in self._folders],
        }

    # Views

    @property
    def cards(self) -> List[Card]:
        return list(self._cards)

    @property
    def folders(self) -> List[Folder]:
        return list(self._folders)

    def get_card(self, card_id: str) -> Optional[Card]:
        for card in self._cards:
            if card.id == card_id:
                return card
        return None

    def get_folder(self, folder_id: Optional[str]) -> Optional[Folder]:
        if not folder_id:
            return None
        for folder in self._folders:
            if folder.id == folder_id:
                return folder
        return None

    def folder_name(self, card: Card) -> Optional[str]:
        """Name of the card's folder; None when unfiled or the folder is gone."""
        folder = self.get_folder(card.folder_id)
        return folder.name if folder else None

    def library_cards(self, folder_id: Optional[str] = None) -> List[Card]:
        return self._filtered(CardStatus.LIBRARY, folder_id)

    def active_cards(self, folder_id: Optional[str] = None) -> List[Card]:
        return self._filtered(CardStatus.ACTIVE, folder_id)

    def _filtered(self, status: CardStatus, folder_id: Optional[str]) -> List[Card]:
        cards = [c for c in self._cards if c.status == status]
        if folder_id:
            cards = [c for c in cards if c.folder_id == folder_id]
        return cards

    # Card mutations

    def add_card(self, card: Card) -> Card:
        """Add a freshly created card to the library (newest first)."""
        card.status = CardStatus.LIBRARY
        card.interval_index = 0
        self._cards.insert(0, card)
        self._notify()
        return card

    def activate(self, card_id: str, now: Optional[int] = None) -> bool:
        """Move a library card into the active queue at the first rung."""
        card = self.get_card(card_id)
        if card is None or card.is_active:
            return False

        if now is None:
            now = self.clock()
        card.status = CardStatus.ACTIVE
        card.interval_index = 0
        card.next_review_time = srs.first_due(now)
        self._notify()
        return True

    def acknowledge_review(self, card_id: str, now: Optional[int] = None) -> bool:
        """Advance an active card one rung and reschedule it from ``now``.

        Whether the card was actually due is the caller's concern.
        """
        card = self.get_card(card_id)
        if card is None or not card.is_active:
            return False

        if now is None:
            now = self.clock()
        card.interval_index, delay = srs.advance(card.interval_index)
        card.next_review_time = now + delay
        self._notify()
        return True

    def deactivate(self, card_id: str) -> bool:
        card = self.get_card(card_id)
        if card is None or not card.is_active:
            return False
        card.status = CardStatus.LIBRARY
        self._notify()
        return True

    def delete(self, card_id: str) -> bool:
        return self.bulk_delete([card_id]) > 0

    def bulk_delete(self, card_ids: Iterable[str]) -> int:
        """Delete every listed card that exists; returns how many were removed."""
        doomed = set(card_ids)
        kept = [c for c in self._cards if c.id not in doomed]
        removed = len(self._cards) - len(kept)
        if removed:
            self._cards = kept
            self._notify()
        return removed

    # Folder mutations

    def create_folder(self, name: str, now: Optional[int] = None) -> Folder:
        if now is None:
            now = self.clock()
        folder = Folder(name=name.strip(), created_at=now)
        self._folders.append(folder)
        self._notify()
        return folder

    def delete_folder(self, folder_id: str) -> bool:
        """Remove a folder. Its cards keep their (now dangling) folder_id."""
        folder = self.get_folder(folder_id)
        if folder is None:
            return False
        self._folders.remove(folder)
        self._notify()
        return True

    # Export

    def export_words(self, folder_id: Optional[str] = None) -> str:
        """Target-language words of library cards, one per line.

        Parenthesised pronunciations and Latin letters are stripped, e.g.
        "كتاب (Kitab)" becomes "كتاب".
        """
        words = []
        for card in self.library_cards(folder_id):
            word = re.sub(r"\s*\(.*?\)\s*", "", card.word)
            word = re.sub(r"[a-zA-ZĀ-ž0-9]", "", word).strip()
            if word:
                words.append(word)
        return "\n".join(words)


def restore(store: CardStore, state: Dict[str, Optional[list]]) -> None:
    """Load a store from the ``cards``/``folders`` lists returned by storage."""
    cards = [Card.from_dict(d) for d in state.get("cards") or [] if isinstance(d, dict)]
    folders = [Folder.from_dict(d) for d in state.get("folders") or [] if isinstance(d, dict)]
    store.load(cards, folders)
