"""Supabase-backed match repository."""

from dataclasses import dataclass

from supabase import Client

from meal_match.adapters.supabase_support import (
    execute,
    first_row,
    parse_timestamp,
    string_set,
)
from meal_match.domain.errors import TransientStoreError
from meal_match.domain.matches import Match
from meal_match.services.matching import MatchRepository

_COLUMNS = "id, session_id, item_id, participant_ids, created_at"


@dataclass
class SupabaseMatchRepository(MatchRepository):
    """Supabase implementation for matches, unique on (session_id, item_id)."""

    client: Client

    def create_match(
        self, session_id: str, item_id: str, participant_ids: frozenset[str]
    ) -> Match:
        """Insert a match; the unique constraint turns duplicates into conflicts."""
        response = execute(
            self.client.table("matches").insert(
                {
                    "session_id": session_id,
                    "item_id": item_id,
                    "participant_ids": sorted(participant_ids),
                }
            ),
            action="create_match",
        )
        row = first_row(response.data)
        if row is None:
            raise TransientStoreError("Failed to create match")
        return _parse_match(row)

    def get_match(self, session_id: str, item_id: str) -> Match | None:
        response = execute(
            self.client.table("matches")
            .select(_COLUMNS)
            .eq("session_id", session_id)
            .eq("item_id", item_id)
            .limit(1),
            action="get_match",
        )
        row = first_row(response.data)
        return _parse_match(row) if row else None

    def list_matches(self, session_id: str) -> list[Match]:
        response = execute(
            self.client.table("matches")
            .select(_COLUMNS)
            .eq("session_id", session_id)
            .order("created_at"),
            action="list_matches",
        )
        return [_parse_match(row) for row in response.data or []]


def _parse_match(row: dict[str, object]) -> Match:
    return Match(
        id=str(row["id"]),
        session_id=str(row["session_id"]),
        item_id=str(row["item_id"]),
        participant_ids=string_set(row.get("participant_ids")),
        created_at=parse_timestamp(row["created_at"]),
    )
