"""Session store contract shared by every backend."""

import re
from typing import Optional, Protocol

# Store ids are hex digests; anything else could escape the save path or key space.
_VALID_ID = re.compile(r"^[A-Za-z0-9,-]+$")


class SessionStoreError(Exception):
    """The backing store failed to open, read, write or delete a record."""


def validate_session_id(session_id: str) -> str:
    """Return `session_id` if it is safe to use as a file name or key suffix."""
    if not session_id or not _VALID_ID.match(session_id):
        raise SessionStoreError(f"Invalid session id: {session_id!r}")
    return session_id


class SessionStore(Protocol):
    """Protocol for session persistence backends."""

    async def open(self, ttl_seconds: int) -> None:
        """Prepare the backend for use. Raises SessionStoreError."""
        ...

    async def read(self, session_id: str) -> Optional[str]:
        """Return the stored payload, or None if absent or expired."""
        ...

    async def write(self, session_id: str, payload: str, ttl_seconds: int) -> None:
        """Persist the payload; it expires `ttl_seconds` after this write."""
        ...

    async def destroy(self, session_id: str) -> None:
        """Delete the record. Deleting a missing record is not an error."""
        ...

    async def gc(self, max_lifetime_seconds: int) -> int:
        """Remove expired records and return how many were removed."""
        ...
