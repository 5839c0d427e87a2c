"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from websession.modules.session.fingerprint import DEFAULT_PREFIX, DEFAULT_SALT

DEFAULT_SAVE_PATH = str(Path(__file__).resolve().parent.parent / "temp")


@dataclass
class StoreConfig:
    """Session store configuration."""
    backend: str
    save_path: str
    redis_url: str
    redis_prefix: str

    @property
    def uses_redis(self) -> bool:
        """Check if sessions are kept in Redis."""
        return self.backend == "redis"


@dataclass
class SessionConfig:
    """Session manager configuration."""
    ttl_minutes: int
    name_prefix: str
    name_salt: str
    gc_probability: float
    id_header: Optional[str] = "X-Session-Id"

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_minutes * 60


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_store_config(self) -> StoreConfig:
        """Get session store configuration."""
        ...

    def get_session_config(self) -> SessionConfig:
        """Get session manager configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_store_config(self) -> StoreConfig:
        """Get session store configuration from environment variables."""
        backend = os.getenv("SESSION_BACKEND", "file").lower()
        if backend not in ("file", "redis"):
            raise ValueError(
                f"SESSION_BACKEND must be 'file' or 'redis', got '{backend}'"
            )

        return StoreConfig(
            backend=backend,
            save_path=os.getenv("SESSION_SAVE_PATH") or DEFAULT_SAVE_PATH,
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            redis_prefix=os.getenv("SESSION_REDIS_PREFIX", "websession:"),
        )

    def get_session_config(self) -> SessionConfig:
        """Get session manager configuration from environment variables."""
        ttl_minutes = int(os.getenv("SESSION_TTL_MINUTES", "720"))
        if ttl_minutes < 1:
            raise ValueError("SESSION_TTL_MINUTES must be at least 1")

        gc_probability = float(os.getenv("SESSION_GC_PROBABILITY", "0.01"))
        if not 0.0 <= gc_probability <= 1.0:
            raise ValueError("SESSION_GC_PROBABILITY must be between 0 and 1")

        return SessionConfig(
            ttl_minutes=ttl_minutes,
            name_prefix=os.getenv("SESSION_NAME_PREFIX", DEFAULT_PREFIX),
            name_salt=os.getenv("SESSION_NAME_SALT", DEFAULT_SALT),
            gc_probability=gc_probability,
            id_header=os.getenv("SESSION_ID_HEADER", "X-Session-Id") or None,
        )
