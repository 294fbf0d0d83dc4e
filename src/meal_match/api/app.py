"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import BackgroundTasks, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from meal_match.api.admin import router as admin_router
from meal_match.api.models import (
    RoomSwipeRequest,
    SessionRequest,
    SwipeRequest,
    serialize_item,
    serialize_match,
    serialize_session,
    serialize_swipe,
)
from meal_match.api.websocket import router as websocket_router
from meal_match.app_logging import configure_logging
from meal_match.containers import AppContainer
from meal_match.domain.errors import (
    MealMatchError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from meal_match.services.catalog import parse_filters
from meal_match.services.swipes import SwipeOutcome

_ERROR_STATUS: dict[type[MealMatchError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    TransientStoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)
    app.include_router(websocket_router)

    @app.exception_handler(MealMatchError)
    async def handle_domain_error(_: Request, exc: MealMatchError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning("Request failed: %s", exc)
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def handle_request_error(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": _describe_request_error(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/food-items")
    async def list_food_items(
        request: Request, category: str | None = None, filters: str | None = None
    ) -> list[dict[str, object]]:
        """Return catalog items for a category and optional tag filters."""
        state_container: AppContainer = request.app.state.container
        items = state_container.catalog_service.list_items(
            category or "", parse_filters(filters)
        )
        return [serialize_item(item) for item in items]

    @app.get("/food-items/{item_id}")
    async def get_food_item(item_id: str, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        return serialize_item(state_container.catalog_service.get_item(item_id))

    @app.post("/swipe-sessions")
    async def create_session(
        body: SessionRequest, request: Request
    ) -> dict[str, object]:
        """Return the open session for the pair, creating it if needed."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_registry.get_or_create(
            body.user_id_1, body.user_id_2, body.category, set(body.filters)
        )
        return serialize_session(session)

    @app.get("/swipe-sessions/{session_id}")
    async def get_session(session_id: str, request: Request) -> dict[str, object]:
        state_container: AppContainer = request.app.state.container
        return serialize_session(
            state_container.session_registry.get_session(session_id)
        )

    @app.post("/swipe-sessions/{session_id}/complete")
    async def complete_session(session_id: str, request: Request) -> dict[str, bool]:
        state_container: AppContainer = request.app.state.container
        state_container.session_registry.complete(session_id)
        return {"success": True}

    @app.get("/swipe-sessions/{session_id}/items")
    async def session_items(
        session_id: str, request: Request
    ) -> list[dict[str, object]]:
        """Return the catalog items offered to a session."""
        state_container: AppContainer = request.app.state.container
        items = state_container.swipe_service.candidates_for(session_id)
        return [serialize_item(item) for item in items]

    @app.get("/swipe-sessions/{session_id}/swipes")
    async def session_swipes(
        session_id: str,
        request: Request,
        user_id: str | None = Query(default=None, alias="userId"),
    ) -> list[dict[str, object]]:
        """Return effective swipes in a session, optionally for one user."""
        state_container: AppContainer = request.app.state.container
        state_container.session_registry.get_session(session_id)
        swipes = state_container.ledger.list_swipes(session_id, user_id)
        return [serialize_swipe(swipe) for swipe in swipes]

    @app.get("/swipe-sessions/{session_id}/matches")
    async def session_matches(
        session_id: str, request: Request
    ) -> list[dict[str, object]]:
        """Return session matches enriched with catalog items."""
        state_container: AppContainer = request.app.state.container
        return [
            serialize_match(match, item)
            for match, item in state_container.swipe_service.matches_with_items(
                session_id
            )
        ]

    @app.post("/swipes")
    async def submit_swipe(
        body: SwipeRequest, request: Request, background_tasks: BackgroundTasks
    ) -> dict[str, object]:
        """Record a session swipe and report whether it created a match."""
        state_container: AppContainer = request.app.state.container
        outcome = state_container.swipe_service.submit(
            body.session_id, body.user_id, body.item_id, body.liked, body.timestamp
        )
        _schedule_notification(state_container, outcome, background_tasks)
        return {"swipe": serialize_swipe(outcome.swipe), "match": outcome.matched}

    @app.post("/swipes/{room}", status_code=status.HTTP_202_ACCEPTED)
    async def submit_room_swipe(
        room: str,
        body: RoomSwipeRequest,
        request: Request,
        background_tasks: BackgroundTasks,
    ) -> dict[str, object]:
        """Record a room swipe; the match outcome is only pushed."""
        state_container: AppContainer = request.app.state.container
        outcome = state_container.swipe_service.submit_to_room(
            room, body.user_id, body.item_id, body.liked, body.timestamp
        )
        _schedule_notification(state_container, outcome, background_tasks)
        return {"success": True}

    @app.get("/matches/{session_id}/{user_id}")
    async def user_matches(
        session_id: str, user_id: str, request: Request
    ) -> dict[str, list[str]]:
        """Return item ids matched in a session that include the user."""
        state_container: AppContainer = request.app.state.container
        state_container.session_registry.get_session(session_id)
        return {
            "itemIds": state_container.swipe_service.matched_items_for(
                session_id, user_id
            )
        }

    return app


def _schedule_notification(
    container: AppContainer,
    outcome: SwipeOutcome,
    background_tasks: BackgroundTasks,
) -> None:
    """Push a new match after the response has been sent."""
    if outcome.match is not None:
        background_tasks.add_task(container.swipe_service.notify_match, outcome.match)


def _status_for(exc: MealMatchError) -> int:
    for error_type, status_code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _describe_request_error(exc: RequestValidationError) -> str:
    """Summarize body validation errors as a single message."""
    fields = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.append(".".join(location) or "body")
    return f"Missing or malformed fields: {', '.join(fields)}"
