"""Domain models for swipe facts."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SwipeEvent:
    """A single yes/no decision on one item, scoped to a session."""

    session_id: str
    user_id: str
    item_id: str
    liked: bool
    timestamp: datetime

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.session_id, self.user_id, self.item_id)

    def supersedes(self, other: "SwipeEvent") -> bool:
        """Return true when this event wins over ``other`` (last write wins)."""
        return self.timestamp >= other.timestamp
