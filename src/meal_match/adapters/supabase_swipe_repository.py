"""Supabase-backed swipe ledger."""

from dataclasses import dataclass

from supabase import Client

from meal_match.adapters.supabase_support import execute, parse_timestamp
from meal_match.domain.swipes import SwipeEvent
from meal_match.services.ledger import SwipeRepository

_COLUMNS = "session_id, user_id, item_id, liked, swiped_at"


@dataclass
class SupabaseSwipeRepository(SwipeRepository):
    """Supabase implementation of the swipe ledger.

    ``record_swipe`` appends to ``swipe_events`` and upserts ``swipe_state``
    only when the new timestamp is not older than the stored one.
    """

    client: Client

    def append(self, event: SwipeEvent) -> bool:
        """Append the event and update the effective swipe."""
        response = execute(
            self.client.rpc(
                "record_swipe",
                {
                    "p_session_id": event.session_id,
                    "p_user_id": event.user_id,
                    "p_item_id": event.item_id,
                    "p_liked": event.liked,
                    "p_swiped_at": event.timestamp.isoformat(),
                },
            ),
            action="record_swipe",
        )
        return bool(response.data)

    def likes_for(self, session_id: str, item_id: str) -> set[str]:
        """Return users whose effective swipe on the item is a like."""
        response = execute(
            self.client.table("swipe_state")
            .select("user_id")
            .eq("session_id", session_id)
            .eq("item_id", item_id)
            .eq("liked", True),
            action="likes_for",
        )
        return {str(row["user_id"]) for row in response.data or []}

    def list_effective(
        self, session_id: str, user_id: str | None = None
    ) -> list[SwipeEvent]:
        """Return effective swipes for a session."""
        query = (
            self.client.table("swipe_state")
            .select(_COLUMNS)
            .eq("session_id", session_id)
        )
        if user_id is not None:
            query = query.eq("user_id", user_id)
        response = execute(query.order("swiped_at"), action="list_swipes")
        return [_parse_swipe(row) for row in response.data or []]


def _parse_swipe(row: dict[str, object]) -> SwipeEvent:
    return SwipeEvent(
        session_id=str(row["session_id"]),
        user_id=str(row["user_id"]),
        item_id=str(row["item_id"]),
        liked=bool(row["liked"]),
        timestamp=parse_timestamp(row["swiped_at"]),
    )
