"""Push channel endpoint: presence, swipe mirror and match notifications."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PayloadError

from meal_match.api.models import JoinMessage, SwipeMessage
from meal_match.domain.errors import MealMatchError

if TYPE_CHECKING:
    from meal_match.containers import AppContainer

router = APIRouter()

_logger = logging.getLogger(__name__)


@dataclass
class _Connection:
    """Identity attached to a socket after a join message."""

    user_id: str | None = None
    session_id: str | None = None


@router.websocket("/ws")
async def swipe_socket(websocket: WebSocket) -> None:
    """Serve one client connection until it closes."""
    container: AppContainer = websocket.app.state.container
    await websocket.accept()
    connection = _Connection()
    try:
        while True:
            raw = await websocket.receive_text()
            await _handle_message(container, websocket, connection, raw)
    except WebSocketDisconnect:
        pass
    finally:
        if connection.user_id:
            try:
                await container.presence_channel.leave(connection.user_id, websocket)
            except Exception:
                _logger.exception(
                    "Failed to announce disconnect",
                    extra={"user_id": connection.user_id},
                )


async def _handle_message(
    container: AppContainer,
    websocket: WebSocket,
    connection: _Connection,
    raw: str,
) -> None:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        await _send_error(websocket, "Message is not valid JSON")
        return
    if not isinstance(data, dict):
        await _send_error(websocket, "Message must be a JSON object")
        return
    message_type = data.get("type")
    try:
        if message_type == "join":
            join = JoinMessage.model_validate(data)
            await _handle_join(container, websocket, connection, join)
        elif message_type == "swipe":
            swipe = SwipeMessage.model_validate(data)
            await _handle_swipe(container, websocket, connection, swipe)
        else:
            await _send_error(websocket, f"Unknown message type: {message_type}")
    except PayloadError as exc:
        await _send_error(websocket, f"Malformed {message_type} message")
        _logger.warning("Rejected push message: %s", exc.error_count())
    except MealMatchError as exc:
        await _send_error(websocket, str(exc))


async def _handle_join(
    container: AppContainer,
    websocket: WebSocket,
    connection: _Connection,
    message: JoinMessage,
) -> None:
    if connection.user_id and connection.user_id != message.user_id:
        await container.presence_channel.leave(connection.user_id, websocket)
    connection.user_id = message.user_id
    connection.session_id = message.session_id
    await container.presence_channel.join(
        message.user_id, message.session_id, websocket
    )
    await websocket.send_json(
        {
            "type": "joined",
            "userId": message.user_id,
            "sessionId": message.session_id,
        }
    )


async def _handle_swipe(
    container: AppContainer,
    websocket: WebSocket,
    connection: _Connection,
    message: SwipeMessage,
) -> None:
    if not connection.user_id or not connection.session_id:
        await _send_error(websocket, "Join a session before swiping")
        return
    # Unknown ids are rooms that start with this swipe.
    session = container.session_registry.find_session(connection.session_id)
    service = container.swipe_service
    if session is None or session.is_room:
        outcome = service.submit_to_room(
            connection.session_id,
            connection.user_id,
            message.item_id,
            message.liked,
            message.timestamp,
        )
    else:
        outcome = service.submit(
            session.id,
            connection.user_id,
            message.item_id,
            message.liked,
            message.timestamp,
        )
    if outcome.match is not None:
        await service.notify_match(outcome.match)
    await service.mirror_swipe(outcome.swipe)


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"type": "error", "message": message})
