"""Persisted session state: the bearer token and the cached user identity.

Credentials are acquired elsewhere (login screens); this module only reads,
stores and invalidates what was persisted.
"""

from __future__ import annotations

from typing import Any

from redis.exceptions import RedisError

from petrecords.core import redis as redis_store
from petrecords.core.config import Settings
from petrecords.core.logging import get_logger

log = get_logger("session")


async def get_token(settings: Settings) -> str | None:
    try:
        token = await redis_store.get(settings.TOKEN_KEY)
    except RedisError as exc:
        log.warning("session_unreadable", key=settings.TOKEN_KEY, error=str(exc))
        return None
    return token or None


async def get_user(settings: Settings) -> dict[str, Any] | None:
    try:
        user = await redis_store.get_json(settings.USER_KEY)
    except (RedisError, ValueError) as exc:
        log.warning("session_unreadable", key=settings.USER_KEY, error=str(exc))
        return None
    return user if isinstance(user, dict) else None


async def save_session(token: str, user: dict[str, Any], settings: Settings) -> None:
    await redis_store.set(settings.TOKEN_KEY, token)
    await redis_store.set_json(settings.USER_KEY, user)


async def clear_session(settings: Settings) -> None:
    """Forget the token and cached user (the client is logged out afterwards)."""
    await redis_store.delete(settings.TOKEN_KEY, settings.USER_KEY)
