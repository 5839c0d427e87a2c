import logging
import random
from typing import Optional

from websession.modules.storage.base import SessionStore, SessionStoreError

from .errors import SessionInitError
from .fingerprint import DEFAULT_PREFIX, DEFAULT_SALT, session_name
from .session import SessionManager

logger = logging.getLogger(__name__)

DEFAULT_TTL_MINUTES = 720


class SessionScope:
    """
    Owner of the single session of one request.

    A scope is created per request with the client's fingerprint inputs and
    handed to whatever needs the session. The first start() creates the
    SessionManager; later calls return that same manager and ignore their
    arguments. close() flushes the live manager, so a scope used as an async
    context manager always releases its session.
    """

    def __init__(
        self,
        store: SessionStore,
        client_ip: Optional[str],
        user_agent: Optional[str],
        name_prefix: str = DEFAULT_PREFIX,
        name_salt: str = DEFAULT_SALT,
        gc_probability: float = 0.0,
    ):
        """
        Initialize session scope.

        Args:
            store: Session store shared by the application
            client_ip: Remote address of the request
            user_agent: User-Agent header of the request
            name_prefix: Fixed leading component of the fingerprint
            name_salt: Fixed middle component of the fingerprint
            gc_probability: Chance per start() of collecting expired sessions
        """
        self.store = store
        self.client_ip = client_ip
        self.user_agent = user_agent
        self.name_prefix = name_prefix
        self.name_salt = name_salt
        self.gc_probability = gc_probability
        self._instance: Optional[SessionManager] = None

    @property
    def instance(self) -> Optional[SessionManager]:
        """The live session manager, if one has been started."""
        return self._instance

    async def start(
        self, session_id: Optional[str] = None, ttl_minutes: int = DEFAULT_TTL_MINUTES
    ) -> SessionManager:
        """
        Start the session for this scope, or return the one already started.

        Args:
            session_id: Optional caller-supplied identifier mixed into the fingerprint
            ttl_minutes: Session lifetime in minutes

        Returns:
            The scope's SessionManager

        Raises:
            SessionInitError: Fingerprint inputs missing or store unavailable,
                or ttl_minutes below 1
        """
        if self._instance is not None:
            if session_id is not None or ttl_minutes != self._instance.ttl_minutes:
                logger.debug("Session already started; ignoring new start() arguments")
            return self._instance

        if ttl_minutes < 1:
            raise SessionInitError(f"ttl_minutes must be at least 1, got {ttl_minutes}")

        name = session_name(
            self.client_ip,
            self.user_agent,
            session_id,
            prefix=self.name_prefix,
            salt=self.name_salt,
        )

        manager = SessionManager(self, self.store, name, ttl_minutes)
        await manager.open()
        self._instance = manager

        if self.gc_probability > 0 and random.random() < self.gc_probability:
            await self._collect_garbage(manager.ttl_seconds)

        return manager

    async def _collect_garbage(self, max_lifetime: int) -> None:
        try:
            removed = await self.store.gc(max_lifetime)
            logger.debug(f"Session gc removed {removed} records")
        except SessionStoreError as e:
            logger.warning(f"Session gc failed: {e}")

    async def close(self) -> None:
        """Flush and release the live session, if any."""
        if self._instance is not None:
            await self._instance.close()

    def _release(self, manager: SessionManager) -> None:
        if self._instance is manager:
            self._instance = None

    async def __aenter__(self) -> "SessionScope":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
