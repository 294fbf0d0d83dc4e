"""Match engine: decide when a quorum of participants liked the same item."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Protocol

from meal_match.domain.errors import ConflictError
from meal_match.domain.matches import Match
from meal_match.services.ledger import SwipeLedger
from meal_match.services.sessions import SessionRegistry

_logger = logging.getLogger(__name__)

DEFAULT_QUORUM = 2


class MatchRepository(Protocol):
    """Persistence interface for matches, unique per (session, item)."""

    def create_match(
        self, session_id: str, item_id: str, participant_ids: frozenset[str]
    ) -> Match:
        """Create a match; raise ConflictError if one exists for the key."""

    def get_match(self, session_id: str, item_id: str) -> Match | None:
        """Return the match for (session, item), if present."""

    def list_matches(self, session_id: str) -> list[Match]:
        """Return matches for a session in creation order."""


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLock:
    """Mutual exclusion per hashable key; idle keys are released."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[object, _LockEntry] = {}

    @contextmanager
    def hold(self, key: object) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, _LockEntry())
            entry.holders += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


@dataclass
class MatchEngine:
    """Evaluate quorum after a like and create each match exactly once."""

    ledger: SwipeLedger
    registry: SessionRegistry
    repository: MatchRepository
    quorum: int = DEFAULT_QUORUM
    locks: KeyedLock = field(default_factory=KeyedLock)

    def __post_init__(self) -> None:
        if self.quorum < DEFAULT_QUORUM:
            raise ValueError(f"quorum must be at least {DEFAULT_QUORUM}")

    def on_like(
        self, session_id: str, item_id: str, liking_user_id: str
    ) -> Match | None:
        """Return a newly created match, or None when none was created.

        Must be called after the like has been recorded in the ledger.
        """
        participants = self.registry.participants_of(session_id)
        with self.locks.hold((session_id, item_id)):
            likers = self.ledger.likes_for(session_id, item_id) & participants
            if len(likers) < self.quorum:
                _logger.debug(
                    "No quorum: session=%s item=%s likes=%s user=%s",
                    session_id,
                    item_id,
                    len(likers),
                    liking_user_id,
                )
                return None
            if self.repository.get_match(session_id, item_id) is not None:
                return None
            try:
                match = self.repository.create_match(
                    session_id, item_id, frozenset(likers)
                )
            except ConflictError:
                _logger.debug(
                    "Match already recorded: session=%s item=%s", session_id, item_id
                )
                return None
        _logger.info(
            "Match created: session=%s item=%s participants=%s",
            session_id,
            item_id,
            sorted(match.participant_ids),
        )
        return match

    def get_match(self, session_id: str, item_id: str) -> Match | None:
        """Return the match for (session, item), if any."""
        return self.repository.get_match(session_id, item_id)

    def list_matches(self, session_id: str) -> list[Match]:
        """Return every match of a session."""
        return self.repository.list_matches(session_id)

    def matched_items_for(self, session_id: str, user_id: str) -> list[str]:
        """Return item ids of matches that include ``user_id``."""
        return [
            match.item_id
            for match in self.repository.list_matches(session_id)
            if user_id in match.participant_ids
        ]
