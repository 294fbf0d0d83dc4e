"""Session registry: pairing scopes and their lifecycle."""

import logging
from dataclasses import dataclass
from typing import Protocol

from meal_match.domain.errors import ConflictError, NotFoundError, ValidationError
from meal_match.domain.sessions import ROOM_CATEGORY, SwipeSession, pair_key

_logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for swipe sessions."""

    def get_session(self, session_id: str) -> SwipeSession | None:
        """Return a session by id, if present."""

    def get_active_session(self, key: str, category: str) -> SwipeSession | None:
        """Return the open session for a pair key and category, if present."""

    def create_session(
        self,
        key: str,
        participant_ids: frozenset[str],
        category: str,
        filters: frozenset[str],
    ) -> SwipeSession:
        """Create an open session; raise ConflictError if one is already open."""

    def join_room(self, room_id: str, user_id: str) -> SwipeSession:
        """Create the room if needed and add the user to its participants."""

    def mark_completed(self, session_id: str) -> None:
        """Mark a session as completed."""

    def list_sessions(self, limit: int) -> list[SwipeSession]:
        """Return the most recently created sessions."""


@dataclass
class SessionRegistry:
    """Application service for session pairing and lifecycle."""

    repository: SessionRepository

    def get_or_create(
        self,
        user_a: str,
        user_b: str,
        category: str,
        filters: set[str] | None = None,
    ) -> SwipeSession:
        """Return the open session for the unordered pair, creating it if needed."""
        if not user_a or not user_b or not category:
            raise ValidationError("userId1, userId2 and category are required")
        if user_a == user_b:
            raise ValidationError("A session needs two different participants")
        if category == ROOM_CATEGORY:
            raise ValidationError(f"Category {category!r} is reserved for rooms")
        key = pair_key(user_a, user_b)
        existing = self.repository.get_active_session(key, category)
        if existing:
            return existing
        try:
            session = self.repository.create_session(
                key=key,
                participant_ids=frozenset({user_a, user_b}),
                category=category,
                filters=frozenset(filters or ()),
            )
        except ConflictError:
            # Another request opened the session between our read and insert.
            session = self.repository.get_active_session(key, category)
            if session is None:
                raise
            return session
        _logger.info(
            "Session created: id=%s participants=%s category=%s",
            session.id,
            sorted(session.participant_ids),
            category,
        )
        return session

    def join_room(self, room_id: str, user_id: str) -> SwipeSession:
        """Add a user to an ad hoc room session."""
        if not room_id or not user_id:
            raise ValidationError("room and userId are required")
        existing = self.repository.get_session(room_id)
        if existing and not existing.is_room:
            raise ValidationError(f"{room_id} is a paired session, not a room")
        if existing and existing.completed:
            raise ValidationError(f"Room {room_id} is completed")
        return self.repository.join_room(room_id, user_id)

    def get_session(self, session_id: str) -> SwipeSession:
        """Return a session or raise NotFoundError."""
        session = self.repository.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}")
        return session

    def find_session(self, session_id: str) -> SwipeSession | None:
        return self.repository.get_session(session_id)

    def complete(self, session_id: str) -> None:
        """Mark a session as completed; completing twice is a no-op."""
        session = self.get_session(session_id)
        if session.completed:
            return
        self.repository.mark_completed(session_id)
        _logger.info("Session completed: id=%s", session_id)

    def participants_of(self, session_id: str) -> set[str]:
        """Return the participant ids of a session."""
        return set(self.get_session(session_id).participant_ids)

    def list_sessions(self, limit: int = 20) -> list[SwipeSession]:
        """Return recent sessions."""
        return self.repository.list_sessions(limit)
