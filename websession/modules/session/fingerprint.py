"""
Session fingerprinting.

A session is named after the client that owns it: its IP address, its user
agent and an optional caller-supplied identifier. The name is hashed once more
to produce the identifier the store files the record under.
"""

import hashlib
from typing import Optional

from .errors import SessionInitError

DEFAULT_PREFIX = "L0j45"
DEFAULT_SALT = "TMWxD"
DEFAULT_SEPARATOR = "/"


def _digest(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def session_name(
    client_ip: Optional[str],
    user_agent: Optional[str],
    session_id: Optional[str] = None,
    prefix: str = DEFAULT_PREFIX,
    salt: str = DEFAULT_SALT,
    separator: str = DEFAULT_SEPARATOR,
) -> str:
    """
    Compute the session name for a client.

    Args:
        client_ip: Remote address of the request
        user_agent: User-Agent header of the request
        session_id: Optional caller-supplied identifier
        prefix: Fixed leading component
        salt: Fixed component between IP and user agent
        separator: Joins the components

    Returns:
        Hex digest identifying the session bucket

    Raises:
        SessionInitError: If the IP or user agent is unavailable
    """
    if not client_ip:
        raise SessionInitError("Client IP address is not available in this context")
    if not user_agent:
        raise SessionInitError("User agent is not available in this context")

    raw = separator.join([prefix, client_ip, salt, user_agent, session_id or ""])
    return _digest(raw)


def session_store_id(name: str) -> str:
    """Identifier under which the store keeps the session named `name`."""
    return _digest(name)
