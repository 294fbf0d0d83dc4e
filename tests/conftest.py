"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from meal_match.adapters.memory_store import (
    InMemoryCatalogRepository,
    InMemoryMatchRepository,
    InMemorySessionRepository,
    InMemorySwipeRepository,
)
from meal_match.config import Settings
from meal_match.containers import AppContainer, StorageBackend, build_container
from meal_match.services.presence import Endpoint


@dataclass
class FakeEndpoint(Endpoint):
    """Endpoint that records every event it is sent."""

    events: list[dict[str, object]] = field(default_factory=list)
    fail: bool = False

    async def send_json(self, data: object) -> None:
        if self.fail:
            raise ConnectionError("socket closed")
        self.events.append(data)

    def types(self) -> list[object]:
        return [event["type"] for event in self.events]


def memory_storage() -> StorageBackend:
    return StorageBackend(
        swipes=InMemorySwipeRepository(),
        sessions=InMemorySessionRepository(),
        matches=InMemoryMatchRepository(),
        catalog=InMemoryCatalogRepository.seeded(),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(admin_token="admin-token", storage_backend="memory")


@pytest.fixture
def storage() -> StorageBackend:
    return memory_storage()


@pytest.fixture
def container(settings: Settings, storage: StorageBackend) -> AppContainer:
    return build_container(settings, storage=storage)
