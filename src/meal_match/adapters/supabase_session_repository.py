"""Supabase-backed session repository."""

from dataclasses import dataclass
from uuid import uuid4

from supabase import Client

from meal_match.adapters.supabase_support import (
    execute,
    first_row,
    parse_timestamp,
    string_set,
)
from meal_match.domain.errors import TransientStoreError
from meal_match.domain.sessions import SwipeSession
from meal_match.services.sessions import SessionRepository

_COLUMNS = "id, participant_ids, category, filters, created_at, completed"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for swipe sessions.

    A partial unique index on ``(pair_key, category) where not completed``
    keeps at most one open session per pair.
    """

    client: Client

    def get_session(self, session_id: str) -> SwipeSession | None:
        """Return a session by id, if present."""
        response = execute(
            self.client.table("swipe_sessions")
            .select(_COLUMNS)
            .eq("id", session_id)
            .limit(1),
            action="get_session",
        )
        row = first_row(response.data)
        return _parse_session(row) if row else None

    def get_active_session(self, key: str, category: str) -> SwipeSession | None:
        """Return the open session for a pair and category."""
        response = execute(
            self.client.table("swipe_sessions")
            .select(_COLUMNS)
            .eq("pair_key", key)
            .eq("category", category)
            .eq("completed", False)
            .limit(1),
            action="get_active_session",
        )
        row = first_row(response.data)
        return _parse_session(row) if row else None

    def create_session(
        self,
        key: str,
        participant_ids: frozenset[str],
        category: str,
        filters: frozenset[str],
    ) -> SwipeSession:
        """Insert an open session; a duplicate raises ConflictError."""
        response = execute(
            self.client.table("swipe_sessions").insert(
                {
                    "id": uuid4().hex,
                    "pair_key": key,
                    "participant_ids": sorted(participant_ids),
                    "category": category,
                    "filters": sorted(filters),
                    "completed": False,
                }
            ),
            action="create_session",
        )
        row = first_row(response.data)
        if row is None:
            raise TransientStoreError("Failed to create session")
        return _parse_session(row)

    def join_room(self, room_id: str, user_id: str) -> SwipeSession:
        """Add a user to a room through the ``join_room`` RPC."""
        response = execute(
            self.client.rpc("join_room", {"p_room_id": room_id, "p_user_id": user_id}),
            action="join_room",
        )
        row = first_row(response.data)
        if row is None:
            raise TransientStoreError("Failed to join room")
        return _parse_session(row)

    def mark_completed(self, session_id: str) -> None:
        """Mark a session completed."""
        execute(
            self.client.table("swipe_sessions")
            .update({"completed": True})
            .eq("id", session_id),
            action="complete_session",
        )

    def list_sessions(self, limit: int) -> list[SwipeSession]:
        """Return recent sessions."""
        response = execute(
            self.client.table("swipe_sessions")
            .select(_COLUMNS)
            .order("created_at", desc=True)
            .limit(limit),
            action="list_sessions",
        )
        return [_parse_session(row) for row in response.data or []]


def _parse_session(row: dict[str, object]) -> SwipeSession:
    return SwipeSession(
        id=str(row["id"]),
        participant_ids=string_set(row.get("participant_ids")),
        category=str(row["category"]),
        filters=string_set(row.get("filters")),
        created_at=parse_timestamp(row["created_at"]),
        completed=bool(row.get("completed", False)),
    )
