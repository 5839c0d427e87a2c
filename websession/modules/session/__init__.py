"""
Session Module - Black Box Interface

Purpose: Manage the key/value session of one client
Interface: SessionScope.start(), SessionManager get/set/delete/destroy/restore
Hidden: Fingerprint derivation, serialization, snapshot format

Replaceable with any session backend through the storage module.
"""

from .errors import SessionError, SessionInitError, SessionSerializationError
from .fingerprint import session_name, session_store_id
from .scope import DEFAULT_TTL_MINUTES, SessionScope
from .session import SessionManager

__all__ = [
    "SessionScope",
    "SessionManager",
    "SessionError",
    "SessionInitError",
    "SessionSerializationError",
    "DEFAULT_TTL_MINUTES",
    "session_name",
    "session_store_id",
]
