"""Card and folder records for Mnemo."""

import time
import uuid
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Dict, Any

from .srs import clamp_index


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


def _pick(data: Dict[str, Any], *names: str, default: Any = None) -> Any:
    """First value present under any of ``names``; older saves used camelCase keys."""
    for name in names:
        if data.get(name) is not None:
            return data[name]
    return default


class CardStatus(str, Enum):
    """Library cards are never scheduled; active cards are."""
    LIBRARY = "library"
    ACTIVE = "active"


@dataclass
class Folder:
    """A flat, named group of cards. Cards only reference folders by id."""

    name: str
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Folder":
        return cls(
            name=data.get("name", ""),
            id=data.get("id") or new_id(),
            created_at=int(_pick(data, "created_at", "createdAt", default=0)),
        )


@dataclass
class Card:
    """A mnemonic vocabulary card.

    ``next_review_time`` is only meaningful while the card is active; it is
    left stale when the card goes back to the library.
    """

    meaning: str
    word: str
    keyword: str = ""
    story: str = ""
    image_prompt: str = ""
    image_ref: Optional[str] = None
    folder_id: Optional[str] = None
    status: CardStatus = CardStatus.LIBRARY
    interval_index: int = 0
    next_review_time: int = 0
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)

    @property
    def is_active(self) -> bool:
        return self.status == CardStatus.ACTIVE

    def is_ready(self, now: int) -> bool:
        """True once an active card's due time has been reached."""
        return self.is_active and now >= self.next_review_time

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        """Build a card from stored data, filling defaults for missing fields."""
        try:
            status = CardStatus(data.get("status", CardStatus.LIBRARY.value))
        except ValueError:
            status = CardStatus.LIBRARY

        return cls(
            meaning=_pick(data, "meaning", "turkishMeaning", default=""),
            word=_pick(data, "word", "arabicWord", default=""),
            keyword=data.get("keyword") or "",
            story=data.get("story") or "",
            image_prompt=_pick(data, "image_prompt", "imagePrompt", default=""),
            image_ref=_pick(data, "image_ref", "imageUrl"),
            folder_id=_pick(data, "folder_id", "folderId") or None,
            status=status,
            interval_index=clamp_index(_pick(data, "interval_index", "intervalIndex", default=0)),
            next_review_time=int(_pick(data, "next_review_time", "nextReviewTime", default=0)),
            id=data.get("id") or new_id(),
            created_at=int(_pick(data, "created_at", "createdAt", default=0)),
        )
