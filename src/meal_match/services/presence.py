"""Presence tracking and best-effort push delivery."""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from meal_match.domain.errors import NotFoundError
from meal_match.domain.matches import Match
from meal_match.services.sessions import SessionRegistry

_logger = logging.getLogger(__name__)


class Endpoint(Protocol):
    """A connected client able to receive JSON events."""

    async def send_json(self, data: object) -> None:
        """Send one JSON-serializable event."""


@dataclass(frozen=True)
class Presence:
    """An active endpoint registration."""

    user_id: str
    session_id: str | None
    endpoint: Endpoint


def match_found_event(match: Match) -> dict[str, object]:
    return {
        "type": "match_found",
        "sessionId": match.session_id,
        "itemId": match.item_id,
        "participantIds": sorted(match.participant_ids),
    }


def partner_online_event(user_id: str) -> dict[str, object]:
    return {"type": "partner_online", "userId": user_id}


def partner_offline_event(user_id: str) -> dict[str, object]:
    return {"type": "partner_offline", "userId": user_id}


@dataclass
class PresenceChannel:
    """Maps each user to at most one live endpoint.

    Events for users without an endpoint are dropped, not queued.
    """

    registry: SessionRegistry
    _presences: dict[str, Presence] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def register_endpoint(
        self, user_id: str, session_id: str | None, endpoint: Endpoint
    ) -> None:
        """Register (or replace) the endpoint of a user."""
        with self._lock:
            self._presences[user_id] = Presence(user_id, session_id, endpoint)
        _logger.info("Endpoint registered: user=%s session=%s", user_id, session_id)

    def unregister(
        self, user_id: str, endpoint: Endpoint | None = None
    ) -> Presence | None:
        """Remove a user's endpoint and return the removed registration.

        When ``endpoint`` is given, only that exact endpoint is removed so a
        stale connection cannot evict a newer one.
        """
        with self._lock:
            current = self._presences.get(user_id)
            if current is None:
                return None
            if endpoint is not None and current.endpoint is not endpoint:
                return None
            del self._presences[user_id]
        _logger.info("Endpoint unregistered: user=%s", user_id)
        return current

    def is_online(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._presences

    def online_users(self) -> dict[str, str | None]:
        """Return a snapshot of user id to session id."""
        with self._lock:
            return {
                user_id: presence.session_id
                for user_id, presence in self._presences.items()
            }

    async def deliver(self, user_id: str, event: dict[str, object]) -> bool:
        """Send an event to a user's endpoint; return false if it was dropped."""
        with self._lock:
            presence = self._presences.get(user_id)
        if presence is None:
            _logger.info(
                "Dropped %s event for offline user %s", event.get("type"), user_id
            )
            return False
        try:
            await presence.endpoint.send_json(event)
        except Exception:
            _logger.exception(
                "Failed to deliver %s event",
                event.get("type"),
                extra={"user_id": user_id},
            )
            self.unregister(user_id, presence.endpoint)
            return False
        return True

    async def deliver_all(
        self, user_ids: Iterable[str], event: dict[str, object]
    ) -> set[str]:
        """Deliver an event to several users and return those reached."""
        delivered = set()
        for user_id in sorted(set(user_ids)):
            if await self.deliver(user_id, event):
                delivered.add(user_id)
        return delivered

    async def join(
        self, user_id: str, session_id: str | None, endpoint: Endpoint
    ) -> None:
        """Register an endpoint and tell the session partners the user is online."""
        self.register_endpoint(user_id, session_id, endpoint)
        partners = self._partners(user_id, session_id)
        await self.deliver_all(
            (p for p in partners if self.is_online(p)), partner_online_event(user_id)
        )

    async def leave(self, user_id: str, endpoint: Endpoint | None = None) -> None:
        """Unregister an endpoint and tell the session partners the user left."""
        removed = self.unregister(user_id, endpoint)
        if removed is None:
            return
        partners = self._partners(user_id, removed.session_id)
        await self.deliver_all(
            (p for p in partners if self.is_online(p)), partner_offline_event(user_id)
        )

    def _partners(self, user_id: str, session_id: str | None) -> set[str]:
        if not session_id:
            return set()
        try:
            session = self.registry.get_session(session_id)
        except NotFoundError:
            return set()
        return session.partners_of(user_id)
