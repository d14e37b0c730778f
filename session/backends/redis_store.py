"""Redis-backed session store.

Relies on native Redis semantics, which already match the store contract:
``SET`` clears a previous TTL (``SET ... EX`` stores value and TTL in one
command), ``EXPIRE`` on a missing key is a no-op and a non-positive
``EXPIRE`` deletes the key.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as redis_asyncio
from redis.exceptions import RedisError

from core.logger import PollbotLogger
from session.session import SessionKey
from session.store import SessionStore, StoreError

logger = PollbotLogger.get_logger(__name__)


class RedisStore(SessionStore):
    """Session store over a :mod:`redis.asyncio` client.

    The client's connection pool serializes access, so one store can be
    shared by every session.

    Args:
        client: A ready ``redis.asyncio.Redis`` instance.
        key_prefix: Prepended to every session key.
    """

    def __init__(self, client: redis_asyncio.Redis, key_prefix: str = "session:") -> None:
        self._client = client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, redis_url: str, key_prefix: str = "session:") -> "RedisStore":
        """Create a store from a ``redis://host:port/db`` URL."""
        client = redis_asyncio.from_url(
            redis_url,
            socket_timeout=5.0,
            socket_connect_timeout=5.0,
        )
        # Never log credentials.
        logger.info("Redis session store configured", extra={"url": redis_url.split("@")[-1]})
        return cls(client, key_prefix=key_prefix)

    def _name(self, key: SessionKey) -> str:
        return f"{self._key_prefix}{key}"

    async def get(self, key: SessionKey) -> Optional[bytes]:
        try:
            value = await self._client.get(self._name(key))
        except RedisError as exc:
            raise StoreError(f"Redis GET failed for {key}: {exc}") from exc
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def set(self, key: SessionKey, value: bytes, ttl: Optional[int] = None) -> None:
        # A non-positive EX is a Redis error.
        if ttl is not None and ttl <= 0:
            await self.delete(key)
            return
        try:
            await self._client.set(self._name(key), value, ex=ttl)
        except RedisError as exc:
            raise StoreError(f"Redis SET failed for {key}: {exc}") from exc

    async def expire(self, key: SessionKey, seconds: int) -> None:
        try:
            await self._client.expire(self._name(key), seconds)
        except RedisError as exc:
            raise StoreError(f"Redis EXPIRE failed for {key}: {exc}") from exc

    async def delete(self, key: SessionKey) -> None:
        try:
            await self._client.delete(self._name(key))
        except RedisError as exc:
            raise StoreError(f"Redis DEL failed for {key}: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
