"""
Storage Module - Black Box Interface

Purpose: Abstract session persistence
Interface: SessionStore protocol, build_store(), StorageModule.connect()
Hidden: File layout, Redis specifics, connection handling

Can be replaced with any storage backend without affecting other modules.
"""

import logging
import os
from typing import TYPE_CHECKING, Optional

import redis.asyncio as redis

from .base import SessionStore, SessionStoreError, validate_session_id
from .file_store import FileSessionStore
from .redis_store import RedisSessionStore

if TYPE_CHECKING:
    from websession.config.provider import StoreConfig

logger = logging.getLogger(__name__)


class StorageModule:
    """Owns the Redis connection used by the Redis session store."""

    def __init__(self, connection_url: str = None):
        """Initialize storage with connection URL."""
        self.url = connection_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self._client = None

    async def connect(self) -> redis.Redis:
        """Get storage connection."""
        if not self._client:
            self._client = redis.from_url(self.url, encoding="utf-8", decode_responses=True)
        return self._client

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None


def build_store(config: "StoreConfig", redis_client: Optional[redis.Redis] = None) -> SessionStore:
    """
    Build the session store selected by configuration.

    Args:
        config: Store configuration
        redis_client: Connected client, required for the redis backend

    Returns:
        SessionStore implementation
    """
    if config.uses_redis:
        if redis_client is None:
            raise ValueError("redis backend selected but no Redis client was provided")
        logger.info(f"Using Redis session store (prefix '{config.redis_prefix}')")
        return RedisSessionStore(redis_client, prefix=config.redis_prefix)

    logger.info(f"Using file session store at {config.save_path}")
    return FileSessionStore(config.save_path)


__all__ = [
    "StorageModule",
    "SessionStore",
    "SessionStoreError",
    "FileSessionStore",
    "RedisSessionStore",
    "build_store",
    "validate_session_id",
]
