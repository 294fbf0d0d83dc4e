"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from meal_match.api.models import serialize_session

if TYPE_CHECKING:
    from meal_match.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health(request: Request) -> dict[str, str]:
    """Admin health check reporting the storage backend."""
    container: AppContainer = request.app.state.container
    return {"status": "ok", "storage_backend": container.settings.storage_backend}


@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(request: Request, limit: int = 20) -> dict[str, object]:
    """Return recently created sessions."""
    container: AppContainer = request.app.state.container
    sessions = container.session_registry.list_sessions(limit)
    return {"sessions": [serialize_session(session) for session in sessions]}


@router.get("/presence", dependencies=[Depends(require_admin)])
async def list_presence(request: Request) -> dict[str, object]:
    """Return users with a live push connection."""
    container: AppContainer = request.app.state.container
    online = container.presence_channel.online_users()
    return {
        "online": [
            {"userId": user_id, "sessionId": session_id}
            for user_id, session_id in sorted(online.items())
        ]
    }
