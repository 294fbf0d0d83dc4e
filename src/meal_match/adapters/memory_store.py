"""In-process storage backend."""

import threading
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

from meal_match.domain.catalog import FoodItem
from meal_match.domain.errors import ConflictError
from meal_match.domain.matches import Match
from meal_match.domain.sessions import ROOM_CATEGORY, SwipeSession
from meal_match.domain.swipes import SwipeEvent
from meal_match.services.catalog import CatalogRepository
from meal_match.services.ledger import SwipeRepository
from meal_match.services.matching import MatchRepository
from meal_match.services.sessions import SessionRepository


@dataclass
class InMemorySwipeRepository(SwipeRepository):
    """Append-only swipe log with an effective-state index per (session, item)."""

    events: list[SwipeEvent] = field(default_factory=list)
    _effective: dict[tuple[str, str], dict[str, SwipeEvent]] = field(
        default_factory=dict
    )
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def append(self, event: SwipeEvent) -> bool:
        with self._lock:
            by_user = self._effective.setdefault((event.session_id, event.item_id), {})
            current = by_user.get(event.user_id)
            if current == event:
                return False
            self.events.append(event)
            if current is None or event.supersedes(current):
                by_user[event.user_id] = event
            return True

    def likes_for(self, session_id: str, item_id: str) -> set[str]:
        with self._lock:
            by_user = self._effective.get((session_id, item_id), {})
            return {user_id for user_id, event in by_user.items() if event.liked}

    def list_effective(
        self, session_id: str, user_id: str | None = None
    ) -> list[SwipeEvent]:
        with self._lock:
            return [
                event
                for (event_session, _), by_user in self._effective.items()
                if event_session == session_id
                for event in by_user.values()
                if user_id is None or event.user_id == user_id
            ]


@dataclass
class InMemorySessionRepository(SessionRepository):
    """Session store with a unique index on open (pair key, category)."""

    sessions: dict[str, SwipeSession] = field(default_factory=dict)
    _active: dict[tuple[str, str], str] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def get_session(self, session_id: str) -> SwipeSession | None:
        with self._lock:
            return self.sessions.get(session_id)

    def get_active_session(self, key: str, category: str) -> SwipeSession | None:
        with self._lock:
            session_id = self._active.get((key, category))
            return self.sessions.get(session_id) if session_id else None

    def create_session(
        self,
        key: str,
        participant_ids: frozenset[str],
        category: str,
        filters: frozenset[str],
    ) -> SwipeSession:
        with self._lock:
            if (key, category) in self._active:
                raise ConflictError(f"Open session exists for {key} in {category}")
            session = SwipeSession(
                id=uuid4().hex,
                participant_ids=participant_ids,
                category=category,
                filters=filters,
                created_at=datetime.now(tz=UTC),
            )
            self.sessions[session.id] = session
            self._active[(key, category)] = session.id
            return session

    def join_room(self, room_id: str, user_id: str) -> SwipeSession:
        with self._lock:
            room = self.sessions.get(room_id)
            if room is None:
                room = SwipeSession(
                    id=room_id,
                    participant_ids=frozenset(),
                    category=ROOM_CATEGORY,
                    filters=frozenset(),
                    created_at=datetime.now(tz=UTC),
                )
            if user_id not in room.participant_ids:
                room = replace(room, participant_ids=room.participant_ids | {user_id})
            self.sessions[room_id] = room
            return room

    def mark_completed(self, session_id: str) -> None:
        with self._lock:
            session = self.sessions.get(session_id)
            if session is None:
                return
            self.sessions[session_id] = replace(session, completed=True)
            for index_key, active_id in list(self._active.items()):
                if active_id == session_id:
                    del self._active[index_key]

    def list_sessions(self, limit: int) -> list[SwipeSession]:
        with self._lock:
            ordered = sorted(
                self.sessions.values(), key=lambda item: item.created_at, reverse=True
            )
            return ordered[:limit]


@dataclass
class InMemoryMatchRepository(MatchRepository):
    """Match store keyed by (session, item)."""

    matches: dict[tuple[str, str], Match] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def create_match(
        self, session_id: str, item_id: str, participant_ids: frozenset[str]
    ) -> Match:
        with self._lock:
            if (session_id, item_id) in self.matches:
                raise ConflictError(f"Match exists for {session_id}/{item_id}")
            match = Match(
                id=uuid4().hex,
                session_id=session_id,
                item_id=item_id,
                participant_ids=participant_ids,
                created_at=datetime.now(tz=UTC),
            )
            self.matches[(session_id, item_id)] = match
            return match

    def get_match(self, session_id: str, item_id: str) -> Match | None:
        with self._lock:
            return self.matches.get((session_id, item_id))

    def list_matches(self, session_id: str) -> list[Match]:
        with self._lock:
            return [
                match
                for (match_session, _), match in self.matches.items()
                if match_session == session_id
            ]


@dataclass
class InMemoryCatalogRepository(CatalogRepository):
    """Static catalog seeded with sample items."""

    items: dict[str, FoodItem] = field(default_factory=dict)

    @classmethod
    def seeded(cls) -> "InMemoryCatalogRepository":
        return cls(items={item.id: item for item in SAMPLE_ITEMS})

    def list_items(self, category: str) -> list[FoodItem]:
        return [item for item in self.items.values() if item.category == category]

    def get_item(self, item_id: str) -> FoodItem | None:
        return self.items.get(item_id)


SAMPLE_ITEMS: tuple[FoodItem, ...] = (
    FoodItem(
        id="creamy-tuscan-pasta",
        name="Creamy Tuscan Pasta",
        category="cooking",
        tags=("Italian", "Vegetarian"),
        description="Pasta with sun-dried tomatoes, spinach and Italian herbs",
        rating="4.8",
        details={"cook_time": "25 min", "calories": "520", "servings": "4"},
    ),
    FoodItem(
        id="truffle-burger",
        name="Truffle Burger Deluxe",
        category="cooking",
        tags=("American", "Comfort Food"),
        description="Burger with truffle mayo and sweet potato fries",
        rating="4.6",
        details={"cook_time": "20 min", "calories": "680", "servings": "4"},
    ),
    FoodItem(
        id="mediterranean-bowl",
        name="Mediterranean Power Bowl",
        category="cooking",
        tags=("Healthy", "Vegetarian"),
        description="Quinoa, chickpeas and tahini dressing",
        rating="4.7",
        details={"cook_time": "15 min", "calories": "420", "servings": "2"},
    ),
    FoodItem(
        id="dragon-roll",
        name="Dragon Roll Sushi",
        category="delivery",
        tags=("Japanese", "Fresh"),
        description="Sushi rolls with eel, avocado and spicy mayo",
        rating="4.9",
        details={"delivery_time": "30-45 min", "price": "$24.99"},
    ),
    FoodItem(
        id="thai-basil-chicken",
        name="Spicy Thai Basil Chicken",
        category="delivery",
        tags=("Thai", "Spicy"),
        description="Pad kra pao with jasmine rice",
        rating="4.7",
        details={"delivery_time": "25-35 min", "price": "$16.99"},
    ),
    FoodItem(
        id="bistro-le-petit",
        name="Bistro Le Petit",
        category="dineout",
        tags=("French", "Fine Dining"),
        description="Cozy French bistro",
        rating="4.5",
        details={"distance": "0.8 miles", "price": "$$$"},
    ),
    FoodItem(
        id="local-gastropub",
        name="The Local Gastropub",
        category="dineout",
        tags=("American", "Casual"),
        description="Craft beer and elevated pub food",
        rating="4.3",
        details={"distance": "1.2 miles", "price": "$$"},
    ),
)
