"""Domain models for matches."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Match:
    """Derived fact that a quorum of participants liked the same item."""

    id: str
    session_id: str
    item_id: str
    participant_ids: frozenset[str]
    created_at: datetime
