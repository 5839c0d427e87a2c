"""Redis-backed session store."""

import logging
from typing import Optional

from redis.exceptions import RedisError

from .base import SessionStoreError, validate_session_id

logger = logging.getLogger(__name__)


class RedisSessionStore:
    def __init__(self, redis_client, prefix: str = "websession:"):
        """
        Initialize Redis store.

        Args:
            redis_client: Async Redis client (decode_responses=True)
            prefix: Key prefix for session records
        """
        self.redis = redis_client
        self.prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{validate_session_id(session_id)}"

    async def open(self, ttl_seconds: int) -> None:
        try:
            await self.redis.ping()
        except RedisError as e:
            raise SessionStoreError(f"Redis unavailable: {e}") from e

    async def read(self, session_id: str) -> Optional[str]:
        try:
            data = await self.redis.get(self._key(session_id))
        except RedisError as e:
            raise SessionStoreError(f"Failed to read session {session_id}: {e}") from e

        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return data

    async def write(self, session_id: str, payload: str, ttl_seconds: int) -> None:
        try:
            await self.redis.setex(self._key(session_id), ttl_seconds, payload)
        except RedisError as e:
            raise SessionStoreError(f"Failed to write session {session_id}: {e}") from e

    async def destroy(self, session_id: str) -> None:
        try:
            await self.redis.delete(self._key(session_id))
        except RedisError as e:
            raise SessionStoreError(f"Failed to delete session {session_id}: {e}") from e

    async def gc(self, max_lifetime_seconds: int) -> int:
        # Redis expires keys on its own
        return 0
