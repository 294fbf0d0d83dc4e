"""Domain models for the food catalog."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FoodItem:
    """Catalog entry shown to a session for swiping."""

    id: str
    name: str
    category: str
    tags: tuple[str, ...] = ()
    description: str = ""
    image: str | None = None
    rating: str | None = None
    details: dict[str, object] = field(default_factory=dict, hash=False, compare=False)

    def matches_filters(self, filters: set[str] | frozenset[str]) -> bool:
        """Return true when any filter is a substring of any tag."""
        if not filters:
            return True
        lowered_tags = [tag.lower() for tag in self.tags]
        return any(
            value.lower() in tag for value in filters for tag in lowered_tags
        )
