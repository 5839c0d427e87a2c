"""
File-backed session store.

One file per session under the save path, named ``sess_<id>``. Each file holds
a small JSON envelope with the absolute expiry time and the session payload.
Writes go through a temporary file and ``os.replace`` so a concurrent reader
sees either the old record or the new one, never a partial write.

Filesystem calls run in a worker thread so they never block the event loop.
"""

import asyncio
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Optional, Union

from .base import SessionStoreError, validate_session_id

logger = logging.getLogger(__name__)

FILE_PREFIX = "sess_"


def _read_expiry(path: Path) -> Optional[float]:
    """Recorded expiry of a session file, or None if the file is unreadable."""
    try:
        return float(json.loads(path.read_text(encoding="utf-8"))["expires_at"])
    except (ValueError, KeyError, TypeError):
        return None


class FileSessionStore:
    """Session store that keeps records as files in a directory."""

    def __init__(self, save_path: Union[str, Path]):
        """
        Initialize file store.

        Args:
            save_path: Directory holding session files (created on open)
        """
        self.save_path = Path(save_path)

    def _path_for(self, session_id: str) -> Path:
        return self.save_path / f"{FILE_PREFIX}{validate_session_id(session_id)}"

    async def open(self, ttl_seconds: int) -> None:
        await asyncio.to_thread(self._open)

    def _open(self) -> None:
        try:
            self.save_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SessionStoreError(f"Cannot create session directory {self.save_path}: {e}") from e

        if not os.access(self.save_path, os.W_OK):
            raise SessionStoreError(f"Session directory {self.save_path} is not writable")

    async def read(self, session_id: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, self._path_for(session_id))

    def _read(self, path: Path) -> Optional[str]:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SessionStoreError(f"Cannot read session file {path}: {e}") from e

        try:
            envelope = json.loads(raw)
            expires_at = float(envelope["expires_at"])
            payload = envelope["payload"]
        except (ValueError, KeyError, TypeError) as e:
            raise SessionStoreError(f"Corrupt session file {path}: {e}") from e

        if expires_at <= time.time():
            logger.debug(f"Session file {path.name} expired")
            return None

        return payload

    async def write(self, session_id: str, payload: str, ttl_seconds: int) -> None:
        envelope = json.dumps({"expires_at": time.time() + ttl_seconds, "payload": payload})
        await asyncio.to_thread(self._write, self._path_for(session_id), envelope)

    def _write(self, path: Path, envelope: str) -> None:
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=".tmp_", dir=self.save_path)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(envelope)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise SessionStoreError(f"Cannot write session file {path}: {e}") from e

    async def destroy(self, session_id: str) -> None:
        await asyncio.to_thread(self._destroy, self._path_for(session_id))

    def _destroy(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise SessionStoreError(f"Cannot delete session file {path}: {e}") from e

    async def gc(self, max_lifetime_seconds: int) -> int:
        """
        Remove expired session files.

        A readable file is expired only when its recorded expiry has passed,
        whatever its age. `max_lifetime_seconds` applies to files whose
        envelope cannot be read: they go once their mtime is that old.

        Returns:
            Number of files removed
        """
        return await asyncio.to_thread(self._gc, max_lifetime_seconds)

    def _gc(self, max_lifetime_seconds: int) -> int:
        if not self.save_path.is_dir():
            return 0

        now = time.time()
        removed = 0

        for path in self.save_path.glob(f"{FILE_PREFIX}*"):
            try:
                expires_at = _read_expiry(path)
                if expires_at is not None:
                    expired = expires_at <= now
                else:
                    expired = now - path.stat().st_mtime > max_lifetime_seconds

                if expired:
                    path.unlink(missing_ok=True)
                    removed += 1
            except OSError as e:
                logger.warning(f"Failed to collect session file {path.name}: {e}")

        if removed:
            logger.info(f"Session gc removed {removed} expired files from {self.save_path}")
        return removed
