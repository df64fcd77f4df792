"""Session package."""

from fundlove.session.cache import (
    SESSION_KEY,
    FileSessionCache,
    MemorySessionCache,
    SessionCacheInterface,
)
from fundlove.session.manager import SESSION_TTL, SessionManager, SessionState

__all__ = [
    "SESSION_KEY",
    "SESSION_TTL",
    "FileSessionCache",
    "MemorySessionCache",
    "SessionCacheInterface",
    "SessionManager",
    "SessionState",
]
