import json
from typing import Any

import redis.asyncio as aioredis

from petrecords.core.config import get_settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        settings = get_settings()
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


async def get(key: str) -> str | None:
    """Retrieve a key's value, or None if missing."""
    r = await get_redis()
    return await r.get(key)  # type: ignore[no-any-return]


async def set(key: str, value: str) -> None:
    """Store a string value under key, replacing any previous value."""
    r = await get_redis()
    await r.set(key, value)


async def delete(*keys: str) -> None:
    """Delete one or more keys (no-op for keys already gone)."""
    r = await get_redis()
    await r.delete(*keys)


async def get_json(key: str) -> Any:
    """Read a key and decode it as JSON.

    Returns None when the key is missing. Raises ValueError when the stored
    value is not valid JSON, so callers can decide whether that counts as
    empty or as corruption.
    """
    raw = await get(key)
    if raw is None:
        return None
    return json.loads(raw)


async def set_json(key: str, value: Any) -> None:
    """Encode value as JSON and store it under key."""
    await set(key, json.dumps(value, ensure_ascii=False))
