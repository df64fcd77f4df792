"""
Session Cache Storage

A single record under a fixed key. The cache only stores and returns raw
text; parsing and expiry are the session manager's job, so a corrupted
file is handled the same way as an expired one.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import structlog


logger = structlog.get_logger(__name__)

SESSION_KEY = "fundlove_session"


class SessionCacheInterface(ABC):
    """Abstract local storage for the cached session record."""

    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the stored record, or None if nothing is stored."""
        pass

    @abstractmethod
    def write(self, payload: str) -> None:
        """Replace the stored record."""
        pass

    @abstractmethod
    def purge(self) -> None:
        """Remove the stored record. Removing a missing record is a no-op."""
        pass


class MemorySessionCache(SessionCacheInterface):
    """Keeps the record in a dict; shared between instances only if passed a store."""

    def __init__(self, store: Optional[dict] = None, key: str = SESSION_KEY):
        self._store = store if store is not None else {}
        self._key = key

    def read(self) -> Optional[str]:
        return self._store.get(self._key)

    def write(self, payload: str) -> None:
        self._store[self._key] = payload

    def purge(self) -> None:
        self._store.pop(self._key, None)


class FileSessionCache(SessionCacheInterface):
    """Stores the record as a JSON file at a fixed path."""

    def __init__(self, path: Path | str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Optional[str]:
        try:
            # Undecodable bytes come back as U+FFFD, fail to parse and are
            # purged by the session manager like any other malformed record
            return self._path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("session_cache_unreadable", path=str(self._path), error=str(e))
            return None

    def write(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(payload, encoding="utf-8")

    def purge(self) -> None:
        self._path.unlink(missing_ok=True)
