"""
Shared pytest fixtures for websession tests.

This module provides common fixtures including:
- Redis mocks for the Redis session store
- File session stores rooted in a temporary directory
- A factory for request scopes with a fixed client fingerprint
"""

import os
import sys
from unittest.mock import AsyncMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from websession.modules.session import SessionScope
from websession.modules.storage import FileSessionStore

CLIENT_IP = "203.0.113.7"
USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) Firefox/128.0"


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a mock Redis client for async operations."""
    redis = AsyncMock()

    redis.ping = AsyncMock(return_value=True)
    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=0)

    return redis


@pytest.fixture
def mock_redis_with_data():
    """
    Redis mock with in-memory data storage for more realistic tests.

    This allows testing code that reads back what it writes.
    """
    storage = {}
    ttls = {}

    redis = AsyncMock()

    async def mock_ping():
        return True

    async def mock_setex(key, ttl, value):
        storage[key] = value
        ttls[key] = ttl
        return True

    async def mock_get(key):
        return storage.get(key)

    async def mock_delete(*keys):
        count = 0
        for key in keys:
            if key in storage:
                del storage[key]
                ttls.pop(key, None)
                count += 1
        return count

    redis.ping = mock_ping
    redis.setex = mock_setex
    redis.get = mock_get
    redis.delete = mock_delete
    redis._storage = storage  # Expose for test assertions
    redis._ttls = ttls

    return redis


# =============================================================================
# Session Fixtures
# =============================================================================

@pytest.fixture
def save_path(tmp_path):
    """Session directory that does not exist yet."""
    return tmp_path / "sessions"


@pytest.fixture
def file_store(save_path):
    return FileSessionStore(save_path)


@pytest.fixture
def make_scope(file_store):
    """
    Factory for request scopes sharing one store.

    Usage:
        async def test_something(make_scope):
            scope = make_scope()
            session = await scope.start()
    """

    def _make(client_ip=CLIENT_IP, user_agent=USER_AGENT, store=None, **kwargs):
        return SessionScope(store or file_store, client_ip, user_agent, **kwargs)

    return _make


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
