"""Session persistence package."""

from optimism.infrastructure.persistence.session_store import (
    InMemorySessionStore,
    SessionRecord,
    SessionStore,
)

__all__ = [
    "InMemorySessionStore",
    "SessionRecord",
    "SessionStore",
]
