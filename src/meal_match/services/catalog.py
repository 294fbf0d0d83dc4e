"""Services for the food item catalog."""

from dataclasses import dataclass
from typing import Protocol

from meal_match.domain.catalog import FoodItem
from meal_match.domain.errors import NotFoundError, ValidationError


class CatalogRepository(Protocol):
    """Read interface for catalog items."""

    def list_items(self, category: str) -> list[FoodItem]:
        """Return every item in a category."""

    def get_item(self, item_id: str) -> FoodItem | None:
        """Return an item by id, if present."""


@dataclass
class CatalogService:
    """Application service for candidate item lookups."""

    repository: CatalogRepository

    def list_items(
        self, category: str, filters: set[str] | frozenset[str] | None = None
    ) -> list[FoodItem]:
        """Return items in a category, keeping those matching any filter tag."""
        if not category:
            raise ValidationError("Category is required")
        wanted = {value.strip() for value in filters or () if value.strip()}
        return [
            item
            for item in self.repository.list_items(category)
            if item.matches_filters(wanted)
        ]

    def get_item(self, item_id: str) -> FoodItem:
        """Return an item or raise NotFoundError."""
        item = self.repository.get_item(item_id)
        if item is None:
            raise NotFoundError(f"Food item not found: {item_id}")
        return item

    def find_item(self, item_id: str) -> FoodItem | None:
        return self.repository.get_item(item_id)


def parse_filters(raw: str | None) -> set[str]:
    """Parse a comma separated filter list."""
    if not raw:
        return set()
    return {chunk.strip() for chunk in raw.split(",") if chunk.strip()}
