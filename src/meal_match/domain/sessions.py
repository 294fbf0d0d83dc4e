"""Domain models for swipe sessions."""

from dataclasses import dataclass
from datetime import datetime

ROOM_CATEGORY = "room"


@dataclass(frozen=True)
class SwipeSession:
    """A pairing of participants around a category and optional filters."""

    id: str
    participant_ids: frozenset[str]
    category: str
    filters: frozenset[str]
    created_at: datetime
    completed: bool = False

    @property
    def is_room(self) -> bool:
        return self.category == ROOM_CATEGORY

    def partners_of(self, user_id: str) -> set[str]:
        """Return every participant except ``user_id``."""
        return set(self.participant_ids - {user_id})


def pair_key(user_a: str, user_b: str) -> str:
    """Return an order-insensitive key for a pair of users."""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"
