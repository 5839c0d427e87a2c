import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from websession.modules.storage.base import SessionStore, SessionStoreError

from .errors import SessionInitError, SessionSerializationError
from .fingerprint import session_store_id

if TYPE_CHECKING:
    from .scope import SessionScope

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def encode_snapshot(data: Dict[str, str]) -> str:
    """Encode the serialized session data into an opaque snapshot string."""
    return json.dumps({"version": SNAPSHOT_VERSION, "data": data}, separators=(",", ":"))


def decode_snapshot(snapshot: str) -> Dict[str, str]:
    """
    Decode a snapshot produced by encode_snapshot().

    Raises:
        ValueError: If the snapshot is malformed or from another version
    """
    try:
        decoded = json.loads(snapshot)
    except (TypeError, json.JSONDecodeError) as e:
        raise ValueError(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(decoded, dict) or decoded.get("version") != SNAPSHOT_VERSION:
        raise ValueError("Unsupported snapshot version")

    data = decoded.get("data")
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise ValueError("Snapshot data must map keys to serialized values")

    return data


class SessionManager:
    """
    Key/value session bound to one client fingerprint.

    Values are kept JSON-serialized in memory, loaded from the store when the
    session starts and written back when it closes. Instances are created by
    SessionScope.start(); a scope holds at most one live manager.

    Reads and writes on a manager that is not started return sentinels
    (False, None or {}) instead of raising. exists() is the exception: it
    only looks at the data and ignores the started flag.
    """

    def __init__(self, scope: "SessionScope", store: SessionStore, name: str, ttl_minutes: int):
        """
        Initialize session manager.

        Args:
            scope: Owning request scope, notified on close/destroy
            store: Backend holding the serialized session
            name: Session fingerprint name
            ttl_minutes: Session lifetime in minutes
        """
        self._scope = scope
        self._store = store
        self._name: Optional[str] = name
        self._id = session_store_id(name)
        self.ttl_minutes = ttl_minutes
        self._data: Dict[str, str] = {}
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_minutes * 60

    async def open(self) -> None:
        """
        Open the underlying store and load any existing record.

        Raises:
            SessionInitError: Store unavailable or stored record undecodable
        """
        try:
            await self._store.open(self.ttl_seconds)
            payload = await self._store.read(self._id)
        except SessionStoreError as e:
            raise SessionInitError(f"Unable to open session store: {e}") from e

        if payload:
            try:
                self._data = decode_snapshot(payload)
            except ValueError as e:
                raise SessionInitError(f"Stored session {self._id} is unreadable: {e}") from e

        self._started = True
        logger.debug(f"Session {self._id} started with {len(self._data)} keys")

    def set(self, key: str, value: Any) -> bool:
        """
        Store a value under `key`.

        Returns:
            False if the session is not started, True otherwise

        Raises:
            SessionSerializationError: If the value has no JSON encoding, or
                decoding it would not give back an equal value
        """
        if not self._started:
            return False

        try:
            serialized = json.dumps(value, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SessionSerializationError(f"Cannot serialize value for key '{key}': {e}") from e

        # Tuples, non-string keys and colliding keys encode but come back different
        if json.loads(serialized) != value:
            raise SessionSerializationError(
                f"Value for key '{key}' does not survive JSON encoding unchanged"
            )

        self._data[key] = serialized
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get the value stored under `key`.

        Returns `default` when the session is not started, the key is absent,
        or the stored value cannot be decoded. Never raises on bad data.
        """
        if not self._started:
            return default

        if not self.exists(key):
            return default

        try:
            return json.loads(self._data[key])
        except (TypeError, json.JSONDecodeError):
            logger.debug(f"Discarding undecodable value for key '{key}' in session {self._id}")
            return default

    def exists(self, key: str) -> bool:
        """Check whether `key` is present. Does not require a started session."""
        return key in self._data

    def delete(self, key: str) -> bool:
        """
        Remove `key` from the session.

        Returns:
            False if the session is not started; True if the key was removed
            or was already absent
        """
        if not self._started:
            return False

        self._data.pop(key, None)
        return True

    def delete_all(self) -> bool:
        """Remove every key. Returns False if the session is not started."""
        if not self._started:
            return False

        self._data.clear()
        return True

    async def destroy(self) -> Union[str, bool]:
        """
        Destroy the session.

        Captures a snapshot of the current data, removes every key, deletes
        the stored record and detaches the manager from its scope.

        Returns:
            Snapshot string, or False if the session is not started
        """
        if not self._started:
            return False

        snapshot = encode_snapshot(self._data)
        self.delete_all()

        try:
            await self._store.destroy(self._id)
        finally:
            self._started = False
            self._name = None
            self._scope._release(self)

        logger.info(f"Session {self._id} destroyed")
        return snapshot

    def restore(self, snapshot: str) -> bool:
        """
        Replace the session data with the contents of a snapshot.

        Current keys are cleared first, even when the snapshot turns out to
        be unreadable.

        Returns:
            True on success, False if not started or the snapshot is invalid
        """
        if not self._started:
            return False

        self.delete_all()

        try:
            self._data.update(decode_snapshot(snapshot))
        except ValueError as e:
            logger.warning(f"Failed to restore session {self._id}: {e}")
            return False

        return True

    def get_id(self) -> str:
        """Identifier of the session in the store."""
        return self._id

    def get_name(self) -> Optional[str]:
        """Fingerprint name of the session; None once destroyed."""
        return self._name

    def get_all(self) -> Dict[str, Any]:
        """
        Get every key with its deserialized value.

        Unlike get(), an undecodable value is an error here.

        Raises:
            SessionSerializationError: If a stored value cannot be decoded
        """
        if not self._started:
            return {}

        result = {}
        for key, serialized in self._data.items():
            try:
                result[key] = json.loads(serialized)
            except (TypeError, json.JSONDecodeError) as e:
                raise SessionSerializationError(
                    f"Cannot deserialize value for key '{key}': {e}"
                ) from e
        return result

    async def close(self) -> None:
        """
        Flush the session to the store and detach it from its scope.

        Keys are kept; the next request with the same fingerprint sees them.
        Closing a manager that is not started does nothing.
        """
        if not self._started:
            return

        try:
            await self._store.write(self._id, encode_snapshot(self._data), self.ttl_seconds)
        finally:
            self._started = False
            self._scope._release(self)

        logger.debug(f"Session {self._id} closed")
