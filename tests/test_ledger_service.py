"""Tests for the swipe ledger."""

from datetime import UTC, datetime, timedelta

import pytest

from meal_match.adapters.memory_store import InMemorySwipeRepository
from meal_match.domain.errors import ValidationError
from meal_match.services.ledger import SwipeLedger

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


def test_like_then_dislike_excludes_user() -> None:
    ledger = SwipeLedger(InMemorySwipeRepository())

    ledger.record("s1", "u1", "pizza", True, _at(1))
    ledger.record("s1", "u1", "pizza", False, _at(2))

    assert ledger.likes_for("s1", "pizza") == set()


def test_dislike_then_like_includes_user() -> None:
    ledger = SwipeLedger(InMemorySwipeRepository())

    ledger.record("s1", "u1", "pizza", False, _at(1))
    ledger.record("s1", "u1", "pizza", True, _at(2))

    assert ledger.likes_for("s1", "pizza") == {"u1"}


def test_like_dislike_like_counts_user_once() -> None:
    repository = InMemorySwipeRepository()
    ledger = SwipeLedger(repository)

    ledger.record("s1", "u1", "pizza", True, _at(1))
    ledger.record("s1", "u1", "pizza", False, _at(2))
    ledger.record("s1", "u1", "pizza", True, _at(3))

    assert ledger.likes_for("s1", "pizza") == {"u1"}
    assert len(repository.events) == 3
    assert [swipe.liked for swipe in ledger.list_swipes("s1", "u1")] == [True]


def test_older_swipe_arriving_late_does_not_override() -> None:
    ledger = SwipeLedger(InMemorySwipeRepository())

    ledger.record("s1", "u1", "pizza", False, _at(5))
    ledger.record("s1", "u1", "pizza", True, _at(1))

    assert ledger.likes_for("s1", "pizza") == set()


def test_duplicate_swipe_is_not_appended_twice() -> None:
    repository = InMemorySwipeRepository()
    ledger = SwipeLedger(repository)

    ledger.record("s1", "u1", "pizza", True, _at(1))
    ledger.record("s1", "u1", "pizza", True, _at(1))

    assert len(repository.events) == 1


def test_likes_are_scoped_to_session_and_item() -> None:
    ledger = SwipeLedger(InMemorySwipeRepository())

    ledger.record("s1", "u1", "pizza", True, _at(1))
    ledger.record("s2", "u2", "pizza", True, _at(1))
    ledger.record("s1", "u3", "sushi", True, _at(1))

    assert ledger.likes_for("s1", "pizza") == {"u1"}


@pytest.mark.parametrize(
    ("user_id", "item_id", "liked"),
    [
        (None, "pizza", True),
        ("", "pizza", True),
        ("u1", "   ", True),
        ("u1", "pizza", "true"),
        ("u1", "pizza", 1),
        ("u1", "pizza", None),
    ],
)
def test_malformed_swipes_are_rejected(user_id, item_id, liked) -> None:
    repository = InMemorySwipeRepository()
    ledger = SwipeLedger(repository)

    with pytest.raises(ValidationError):
        ledger.record("s1", user_id, item_id, liked)

    assert repository.events == []


def test_numeric_ids_and_naive_timestamps_are_normalized() -> None:
    ledger = SwipeLedger(InMemorySwipeRepository())

    event = ledger.record(7, 42, "pizza", True, datetime(2024, 5, 1, 12, 0))

    assert event.session_id == "7"
    assert event.user_id == "42"
    assert event.timestamp.tzinfo is UTC


def test_list_swipes_orders_by_timestamp_and_filters_user() -> None:
    ledger = SwipeLedger(InMemorySwipeRepository())
    ledger.record("s1", "u1", "sushi", True, _at(3))
    ledger.record("s1", "u1", "pizza", False, _at(1))
    ledger.record("s1", "u2", "pizza", True, _at(2))

    everyone = ledger.list_swipes("s1")
    mine = ledger.list_swipes("s1", "u1")

    assert [swipe.item_id for swipe in everyone] == ["pizza", "pizza", "sushi"]
    assert [swipe.item_id for swipe in mine] == ["pizza", "sushi"]


def test_validate_normalizes_without_storing() -> None:
    repository = InMemorySwipeRepository()
    ledger = SwipeLedger(repository)

    swipe = ledger.validate(" room ", 7, " tacos ", True, _at(1))

    assert (swipe.session_id, swipe.user_id, swipe.item_id) == ("room", "7", "tacos")
    assert repository.events == []
    with pytest.raises(ValidationError):
        ledger.validate("room", "u1", "   ", True)
