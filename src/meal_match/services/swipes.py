"""Swipe pipeline: record, evaluate quorum, fan out notifications."""

import logging
from dataclasses import dataclass
from datetime import datetime

from meal_match.domain.catalog import FoodItem
from meal_match.domain.errors import ValidationError
from meal_match.domain.matches import Match
from meal_match.domain.sessions import SwipeSession
from meal_match.domain.swipes import SwipeEvent
from meal_match.services.catalog import CatalogService
from meal_match.services.ledger import SwipeLedger
from meal_match.services.matching import MatchEngine
from meal_match.services.presence import PresenceChannel, match_found_event
from meal_match.services.sessions import SessionRegistry

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwipeOutcome:
    """Result of a recorded swipe."""

    swipe: SwipeEvent
    match: Match | None = None

    @property
    def matched(self) -> bool:
        return self.match is not None


@dataclass
class SwipeService:
    """Coordinates the ledger, the match engine and the push channel."""

    ledger: SwipeLedger
    registry: SessionRegistry
    engine: MatchEngine
    channel: PresenceChannel
    catalog: CatalogService

    def submit(  # noqa: PLR0913
        self,
        session_id: str,
        user_id: str,
        item_id: str,
        liked: object,
        timestamp: datetime | None = None,
    ) -> SwipeOutcome:
        """Record a swipe in a paired session and evaluate a match."""
        session = self.registry.get_session(session_id)
        if session.completed:
            raise ValidationError(f"Session {session_id} is completed")
        if user_id not in session.participant_ids:
            raise ValidationError(
                f"User {user_id} is not a participant of session {session_id}"
            )
        return self._record(session, user_id, item_id, liked, timestamp)

    def submit_to_room(  # noqa: PLR0913
        self,
        room_id: str,
        user_id: str,
        item_id: str,
        liked: object,
        timestamp: datetime | None = None,
    ) -> SwipeOutcome:
        """Record a swipe in an ad hoc room, joining the user to it first."""
        swipe = self.ledger.validate(room_id, user_id, item_id, liked, timestamp)
        session = self.registry.join_room(swipe.session_id, swipe.user_id)
        return self._record(
            session, swipe.user_id, swipe.item_id, swipe.liked, swipe.timestamp
        )

    async def notify_match(self, match: Match) -> set[str]:
        """Push a match to every participant of its session.

        Delivery failures never propagate to the swipe that caused them.
        """
        recipients = set(match.participant_ids)
        try:
            recipients |= self.registry.participants_of(match.session_id)
        except Exception:
            _logger.exception(
                "Failed to load participants for match notification",
                extra={"session_id": match.session_id},
            )
        try:
            return await self.channel.deliver_all(recipients, match_found_event(match))
        except Exception:
            _logger.exception(
                "Match notification failed", extra={"session_id": match.session_id}
            )
            return set()

    async def mirror_swipe(self, swipe: SwipeEvent) -> None:
        """Tell the other participants that a partner swiped.

        Like match notifications, failures are logged and never reach the
        swiping client.
        """
        event = {
            "type": "partner_swipe",
            "userId": swipe.user_id,
            "itemId": swipe.item_id,
            "liked": swipe.liked,
        }
        try:
            session = self.registry.get_session(swipe.session_id)
            partners = [
                partner
                for partner in session.partners_of(swipe.user_id)
                if self.channel.is_online(partner)
            ]
            await self.channel.deliver_all(partners, event)
        except Exception:
            _logger.exception(
                "Swipe mirror failed", extra={"session_id": swipe.session_id}
            )

    def matched_items_for(self, session_id: str, user_id: str) -> list[str]:
        """Return item ids matched in a session that include the user."""
        return self.engine.matched_items_for(session_id, user_id)

    def matches_with_items(
        self, session_id: str
    ) -> list[tuple[Match, FoodItem | None]]:
        """Return session matches paired with their catalog entry, if known."""
        self.registry.get_session(session_id)
        return [
            (match, self.catalog.find_item(match.item_id))
            for match in self.engine.list_matches(session_id)
        ]

    def candidates_for(self, session_id: str) -> list[FoodItem]:
        """Return the catalog items offered to a session."""
        session = self.registry.get_session(session_id)
        return self.catalog.list_items(session.category, session.filters)

    def _record(  # noqa: PLR0913
        self,
        session: SwipeSession,
        user_id: str,
        item_id: str,
        liked: object,
        timestamp: datetime | None,
    ) -> SwipeOutcome:
        swipe = self.ledger.record(session.id, user_id, item_id, liked, timestamp)
        if not swipe.liked:
            return SwipeOutcome(swipe=swipe)
        match = self.engine.on_like(session.id, swipe.item_id, swipe.user_id)
        return SwipeOutcome(swipe=swipe, match=match)
