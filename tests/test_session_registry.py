"""Tests for the session registry."""

from dataclasses import dataclass

import pytest

from meal_match.adapters.memory_store import InMemorySessionRepository
from meal_match.domain.errors import NotFoundError, ValidationError
from meal_match.domain.sessions import SwipeSession
from meal_match.services.sessions import SessionRegistry


@dataclass
class LaggingSessionRepository(InMemorySessionRepository):
    """Misses the first active-session lookup, like a concurrent insert would."""

    missed_lookups: int = 0

    def get_active_session(self, key: str, category: str) -> SwipeSession | None:
        if self.missed_lookups == 0:
            self.missed_lookups += 1
            return None
        return super().get_active_session(key, category)


def test_pairing_is_symmetric() -> None:
    registry = SessionRegistry(InMemorySessionRepository())

    first = registry.get_or_create("alex", "sam", "cooking")
    second = registry.get_or_create("sam", "alex", "cooking")

    assert first == second
    assert first.participant_ids == frozenset({"alex", "sam"})


def test_categories_get_separate_sessions() -> None:
    registry = SessionRegistry(InMemorySessionRepository())

    cooking = registry.get_or_create("alex", "sam", "cooking", {"Italian"})
    delivery = registry.get_or_create("alex", "sam", "delivery")

    assert cooking.id != delivery.id
    assert cooking.filters == frozenset({"Italian"})


def test_complete_is_idempotent_and_frees_the_pair() -> None:
    registry = SessionRegistry(InMemorySessionRepository())
    session = registry.get_or_create("alex", "sam", "cooking")

    registry.complete(session.id)
    registry.complete(session.id)
    replacement = registry.get_or_create("sam", "alex", "cooking")

    assert registry.get_session(session.id).completed is True
    assert replacement.id != session.id
    assert replacement.completed is False


def test_conflicting_create_returns_existing_session() -> None:
    repository = LaggingSessionRepository()
    registry = SessionRegistry(repository)
    existing = repository.create_session(
        key="alex:sam",
        participant_ids=frozenset({"alex", "sam"}),
        category="cooking",
        filters=frozenset(),
    )

    session = registry.get_or_create("alex", "sam", "cooking")

    assert session.id == existing.id
    assert len(repository.sessions) == 1


def test_unknown_session_raises_not_found() -> None:
    registry = SessionRegistry(InMemorySessionRepository())

    with pytest.raises(NotFoundError):
        registry.participants_of("missing")
    with pytest.raises(NotFoundError):
        registry.complete("missing")


def test_pairing_requires_two_distinct_users() -> None:
    registry = SessionRegistry(InMemorySessionRepository())

    with pytest.raises(ValidationError):
        registry.get_or_create("alex", "alex", "cooking")
    with pytest.raises(ValidationError):
        registry.get_or_create("alex", "sam", "")
    with pytest.raises(ValidationError):
        registry.get_or_create("alex", "sam", "room")


def test_room_membership_grows_as_users_join() -> None:
    registry = SessionRegistry(InMemorySessionRepository())

    registry.join_room("kitchen", "u1")
    registry.join_room("kitchen", "u2")
    room = registry.join_room("kitchen", "u1")

    assert room.is_room
    assert registry.participants_of("kitchen") == {"u1", "u2"}


def test_paired_session_cannot_be_joined_as_room() -> None:
    registry = SessionRegistry(InMemorySessionRepository())
    session = registry.get_or_create("alex", "sam", "cooking")

    with pytest.raises(ValidationError):
        registry.join_room(session.id, "intruder")

    assert registry.participants_of(session.id) == {"alex", "sam"}


def test_completed_room_rejects_new_members() -> None:
    registry = SessionRegistry(InMemorySessionRepository())
    registry.join_room("kitchen", "u1")
    registry.complete("kitchen")

    with pytest.raises(ValidationError):
        registry.join_room("kitchen", "u2")


def test_list_sessions_respects_limit() -> None:
    registry = SessionRegistry(InMemorySessionRepository())
    cooking = registry.get_or_create("alex", "sam", "cooking")
    delivery = registry.get_or_create("alex", "sam", "delivery")

    assert len(registry.list_sessions(limit=1)) == 1
    assert {session.id for session in registry.list_sessions(limit=10)} == {
        cooking.id,
        delivery.id,
    }
