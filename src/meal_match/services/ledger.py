"""Swipe ledger: append-only record of swipe facts."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from meal_match.domain.errors import ValidationError
from meal_match.domain.swipes import SwipeEvent

_logger = logging.getLogger(__name__)


class SwipeRepository(Protocol):
    """Persistence interface for swipe events."""

    def append(self, event: SwipeEvent) -> bool:
        """Persist an event; return false when it was an exact duplicate.

        The effective swipe for (session, user, item) is replaced only when
        the new event's timestamp is not older than the stored one.
        """

    def likes_for(self, session_id: str, item_id: str) -> set[str]:
        """Return users whose effective swipe on the item is a like."""

    def list_effective(
        self, session_id: str, user_id: str | None = None
    ) -> list[SwipeEvent]:
        """Return effective swipes for a session, optionally for one user."""


@dataclass
class SwipeLedger:
    """Application service validating and recording swipes."""

    repository: SwipeRepository

    def record(  # noqa: PLR0913
        self,
        session_id: object,
        user_id: object,
        item_id: object,
        liked: object,
        timestamp: datetime | None = None,
    ) -> SwipeEvent:
        """Validate and persist a swipe, returning the stored event."""
        event = self.validate(session_id, user_id, item_id, liked, timestamp)
        appended = self.repository.append(event)
        _logger.debug(
            "Swipe recorded: session=%s user=%s item=%s liked=%s duplicate=%s",
            event.session_id,
            event.user_id,
            event.item_id,
            event.liked,
            not appended,
        )
        return event

    def validate(  # noqa: PLR0913
        self,
        session_id: object,
        user_id: object,
        item_id: object,
        liked: object,
        timestamp: datetime | None = None,
    ) -> SwipeEvent:
        """Build a swipe from raw input without storing it."""
        return SwipeEvent(
            session_id=_require_id("session_id", session_id),
            user_id=_require_id("user_id", user_id),
            item_id=_require_id("item_id", item_id),
            liked=_require_bool(liked),
            timestamp=_normalize_timestamp(timestamp),
        )

    def likes_for(self, session_id: str, item_id: str) -> set[str]:
        """Return users whose most recent swipe on the item is a like."""
        return self.repository.likes_for(session_id, item_id)

    def list_swipes(
        self, session_id: str, user_id: str | None = None
    ) -> list[SwipeEvent]:
        """Return effective swipes in timestamp order."""
        swipes = self.repository.list_effective(session_id, user_id)
        return sorted(swipes, key=lambda swipe: swipe.timestamp)


def _require_id(name: str, value: object) -> str:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"Missing required field: {name}")
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing required field: {name}")
    return value.strip()


def _require_bool(value: object) -> bool:
    if not isinstance(value, bool):
        raise ValidationError("Field 'liked' must be a boolean")
    return value


def _normalize_timestamp(value: datetime | None) -> datetime:
    if value is None:
        return datetime.now(tz=UTC)
    if not isinstance(value, datetime):
        raise ValidationError("Field 'timestamp' must be a datetime")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
