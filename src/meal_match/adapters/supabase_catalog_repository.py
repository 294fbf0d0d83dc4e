"""Supabase-backed food catalog."""

from dataclasses import dataclass

from supabase import Client

from meal_match.adapters.supabase_support import execute, first_row
from meal_match.domain.catalog import FoodItem
from meal_match.services.catalog import CatalogRepository


@dataclass
class SupabaseCatalogRepository(CatalogRepository):
    """Read-only access to the ``food_items`` table."""

    client: Client

    def list_items(self, category: str) -> list[FoodItem]:
        response = execute(
            self.client.table("food_items")
            .select("*")
            .eq("category", category)
            .order("name"),
            action="list_food_items",
        )
        return [_parse_item(row) for row in response.data or []]

    def get_item(self, item_id: str) -> FoodItem | None:
        response = execute(
            self.client.table("food_items").select("*").eq("id", item_id).limit(1),
            action="get_food_item",
        )
        row = first_row(response.data)
        return _parse_item(row) if row else None


def _parse_item(row: dict[str, object]) -> FoodItem:
    """Parse a food item row into a domain model."""
    details = row.get("details")
    return FoodItem(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        category=str(row.get("category", "")),
        tags=tuple(str(tag) for tag in row.get("tags") or []),
        description=str(row.get("description") or ""),
        image=row.get("image"),
        rating=row.get("rating"),
        details=details if isinstance(details, dict) else {},
    )
