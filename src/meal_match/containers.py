"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_match.adapters.memory_store import (
    InMemoryCatalogRepository,
    InMemoryMatchRepository,
    InMemorySessionRepository,
    InMemorySwipeRepository,
)
from meal_match.adapters.supabase_catalog_repository import SupabaseCatalogRepository
from meal_match.adapters.supabase_match_repository import SupabaseMatchRepository
from meal_match.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from meal_match.adapters.supabase_swipe_repository import SupabaseSwipeRepository
from meal_match.config import Settings, parse_backend
from meal_match.services.catalog import CatalogRepository, CatalogService
from meal_match.services.ledger import SwipeLedger, SwipeRepository
from meal_match.services.matching import MatchEngine, MatchRepository
from meal_match.services.presence import PresenceChannel
from meal_match.services.sessions import SessionRegistry, SessionRepository
from meal_match.services.swipes import SwipeService


@dataclass
class StorageBackend:
    """The repositories of one storage deployment."""

    swipes: SwipeRepository
    sessions: SessionRepository
    matches: MatchRepository
    catalog: CatalogRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    ledger: SwipeLedger
    session_registry: SessionRegistry
    match_engine: MatchEngine
    presence_channel: PresenceChannel
    catalog_service: CatalogService
    swipe_service: SwipeService
    close_resources: Callable[[], Awaitable[None]]


def build_storage(settings: Settings) -> StorageBackend:
    """Create the repositories for the configured backend."""
    backend = parse_backend(settings.storage_backend)
    if backend == "memory":
        return StorageBackend(
            swipes=InMemorySwipeRepository(),
            sessions=InMemorySessionRepository(),
            matches=InMemoryMatchRepository(),
            catalog=InMemoryCatalogRepository.seeded(),
        )
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required")
    client = create_client(settings.supabase_url, settings.supabase_service_key)
    return StorageBackend(
        swipes=SupabaseSwipeRepository(client),
        sessions=SupabaseSessionRepository(client),
        matches=SupabaseMatchRepository(client),
        catalog=SupabaseCatalogRepository(client),
    )


def build_container(
    settings: Settings | None = None, storage: StorageBackend | None = None
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_storage = storage or build_storage(resolved_settings)
    ledger = SwipeLedger(resolved_storage.swipes)
    session_registry = SessionRegistry(resolved_storage.sessions)
    match_engine = MatchEngine(
        ledger=ledger,
        registry=session_registry,
        repository=resolved_storage.matches,
        quorum=resolved_settings.match_quorum,
    )
    presence_channel = PresenceChannel(session_registry)
    catalog_service = CatalogService(resolved_storage.catalog)
    swipe_service = SwipeService(
        ledger=ledger,
        registry=session_registry,
        engine=match_engine,
        channel=presence_channel,
        catalog=catalog_service,
    )

    async def close_resources() -> None:
        for user_id in list(presence_channel.online_users()):
            presence_channel.unregister(user_id)

    return AppContainer(
        settings=resolved_settings,
        ledger=ledger,
        session_registry=session_registry,
        match_engine=match_engine,
        presence_channel=presence_channel,
        catalog_service=catalog_service,
        swipe_service=swipe_service,
        close_resources=close_resources,
    )
