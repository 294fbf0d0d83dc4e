"""Shared helpers for Supabase repositories."""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
from postgrest.exceptions import APIError

from meal_match.domain.errors import ConflictError, TransientStoreError

UNIQUE_VIOLATION = "23505"

_logger = logging.getLogger(__name__)


def execute(query: Any, action: str) -> Any:
    """Run a query, mapping unique violations and outages to domain errors."""
    try:
        return query.execute()
    except APIError as exc:
        if exc.code == UNIQUE_VIOLATION:
            raise ConflictError(f"{action}: {exc.message}") from exc
        _logger.warning("Supabase %s failed: %s", action, exc.message)
        raise TransientStoreError(f"{action} failed") from exc
    except httpx.HTTPError as exc:
        _logger.warning("Supabase %s unreachable: %s", action, exc)
        raise TransientStoreError(f"{action} failed") from exc


def parse_timestamp(raw: object) -> datetime:
    """Parse an ISO timestamp column."""
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not raw:
        raise TransientStoreError(f"Unexpected timestamp value: {raw!r}")
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def first_row(data: object) -> dict[str, Any] | None:
    """Return the first row of a payload that may be a dict or a list."""
    if isinstance(data, dict):
        return data
    if isinstance(data, list) and data:
        return data[0]
    return None


def string_set(values: object) -> frozenset[str]:
    """Coerce an array column into a frozenset of strings."""
    if not isinstance(values, list | tuple | set | frozenset):
        return frozenset()
    return frozenset(str(value) for value in values)
