"""Exceptions raised by the session module."""


class SessionError(Exception):
    """Base class for session errors."""


class SessionInitError(SessionError):
    """
    The session could not be started.

    Raised when the store cannot be opened or configured, when the stored
    record cannot be decoded, or when the fingerprint inputs (client IP,
    user agent) are not available in the current request.
    """


class SessionSerializationError(SessionError, ValueError):
    """A value could not be encoded for storage or decoded on read."""
