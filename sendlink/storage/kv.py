# sendlink/storage/kv.py
# Key-value backends for board documents.
# Every backend applies the same expiry policy: each write sets a TTL,
# and an expired key is never returned.

from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Protocol, Tuple

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from sendlink.middleware.error_handler import StorageError
from sendlink.utils.boards import Clock, utcnow


class KeyValueStore(Protocol):
    """Subset of key-value operations the board store relies on."""

    async def get_json(self, key: str) -> Optional[dict]:
        ...

    async def set_json(self, key: str, value: dict, ttl_seconds: int) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


class RedisKeyValueStore:
    """Redis-backed store; TTL is delegated to Redis key expiry."""

    def __init__(self, url: str, client: Any = None):
        self.url = url
        self._client = client

    async def _get_client(self) -> Any:
        """Get or create the async Redis connection pool."""
        if self._client is None:
            self._client = aioredis.from_url(self.url, decode_responses=True)
        return self._client

    async def get_json(self, key: str) -> Optional[dict]:
        client = await self._get_client()
        try:
            data = await client.get(key)
        except RedisError as e:
            raise StorageError(f"Redis GET failed for {key}") from e
        if not data:
            return None
        return json.loads(data)

    async def set_json(self, key: str, value: dict, ttl_seconds: int) -> None:
        client = await self._get_client()
        try:
            await client.set(key, json.dumps(value, default=str), ex=ttl_seconds)
        except RedisError as e:
            raise StorageError(f"Redis SET failed for {key}") from e

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        try:
            await client.delete(key)
        except RedisError as e:
            raise StorageError(f"Redis DEL failed for {key}") from e

    async def ttl(self, key: str) -> int:
        client = await self._get_client()
        return await client.ttl(key)

    async def ping(self) -> bool:
        client = await self._get_client()
        return bool(await client.ping())

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class MemoryKeyValueStore:
    """In-process store for local development and tests.

    Values are stored as JSON text so callers never share mutable state
    with the store, matching what a round trip through Redis gives.
    """

    def __init__(self, clock: Clock = utcnow):
        self._clock = clock
        self._items: Dict[str, Tuple[str, datetime]] = {}

    def _live(self, key: str) -> Optional[str]:
        item = self._items.get(key)
        if item is None:
            return None
        raw, expires_at = item
        if expires_at <= self._clock():
            del self._items[key]
            return None
        return raw

    async def get_json(self, key: str) -> Optional[dict]:
        raw = self._live(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set_json(self, key: str, value: dict, ttl_seconds: int) -> None:
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        self._items[key] = (json.dumps(value, default=str), expires_at)

    async def delete(self, key: str) -> None:
        self._items.pop(key, None)

    async def ttl(self, key: str) -> int:
        """Seconds left, -2 when absent (Redis convention)."""
        if self._live(key) is None:
            return -2
        _, expires_at = self._items[key]
        return int((expires_at - self._clock()).total_seconds())

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._items.clear()


def create_kv_store(backend: str, redis_url: str, clock: Clock = utcnow) -> KeyValueStore:
    if backend == "memory":
        return MemoryKeyValueStore(clock=clock)
    return RedisKeyValueStore(redis_url)
