"""Request models and response serializers for the HTTP and push APIs."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictBool

from meal_match.domain.catalog import FoodItem
from meal_match.domain.matches import Match
from meal_match.domain.sessions import SwipeSession
from meal_match.domain.swipes import SwipeEvent


def _coerce_identifier(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


Identifier = Annotated[str, BeforeValidator(_coerce_identifier), Field(min_length=1)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SessionRequest(_CamelModel):
    """Body of a get-or-create session call."""

    user_id_1: Identifier = Field(alias="userId1")
    user_id_2: Identifier = Field(alias="userId2")
    category: Identifier
    filters: list[str] = Field(default_factory=list)


class SwipeRequest(_CamelModel):
    """Body of a session-based swipe."""

    session_id: Identifier = Field(alias="sessionId")
    user_id: Identifier = Field(alias="userId")
    item_id: Identifier = Field(alias="itemId")
    liked: StrictBool
    timestamp: datetime | None = None


class RoomSwipeRequest(_CamelModel):
    """Body of a room-based swipe; the room comes from the path."""

    user_id: Identifier = Field(alias="userId")
    item_id: Identifier = Field(alias="itemId")
    liked: StrictBool
    timestamp: datetime | None = None


class JoinMessage(_CamelModel):
    """Push channel message registering presence."""

    type: Literal["join"]
    user_id: Identifier = Field(alias="userId")
    session_id: Identifier | None = Field(default=None, alias="sessionId")


class SwipeMessage(_CamelModel):
    """Push channel mirror of the HTTP swipe."""

    type: Literal["swipe"]
    item_id: Identifier = Field(alias="itemId")
    liked: StrictBool
    timestamp: datetime | None = None


def serialize_session(session: SwipeSession) -> dict[str, object]:
    return {
        "id": session.id,
        "participantIds": sorted(session.participant_ids),
        "category": session.category,
        "filters": sorted(session.filters),
        "createdAt": session.created_at.isoformat(),
        "completed": session.completed,
    }


def serialize_swipe(swipe: SwipeEvent) -> dict[str, object]:
    return {
        "sessionId": swipe.session_id,
        "userId": swipe.user_id,
        "itemId": swipe.item_id,
        "liked": swipe.liked,
        "timestamp": swipe.timestamp.isoformat(),
    }


def serialize_match(
    match: Match, item: FoodItem | None = None
) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": match.id,
        "sessionId": match.session_id,
        "itemId": match.item_id,
        "participantIds": sorted(match.participant_ids),
        "createdAt": match.created_at.isoformat(),
    }
    if item is not None:
        payload["foodItem"] = serialize_item(item)
    return payload


def serialize_item(item: FoodItem) -> dict[str, object]:
    return {
        "id": item.id,
        "name": item.name,
        "category": item.category,
        "tags": list(item.tags),
        "description": item.description,
        "image": item.image,
        "rating": item.rating,
        **item.details,
    }
