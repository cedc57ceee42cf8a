"""
Session Store

The persistence collaborator behind the "persist turn" interface.
The pipeline never stores anything itself; callers hand it a store
and decide when to write.

InMemorySessionStore backs the HTTP surface and the tests. A durable
store only has to implement the SessionStore protocol.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol
from uuid import UUID, uuid4

from optimism.config.logging_config import get_logger
from optimism.domain.enums import IcebergLayer
from optimism.domain.exceptions import SessionNotFound
from optimism.domain.models import ChatTurn

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionRecord:
    """
    One reflection session.

    Attributes:
        id: Session UUID
        title: First 50 characters of the first message
        messages: Ordered user/assistant turns
        current_layer: Deepest layer the session reached
        core_belief: Core belief insight, once found
        completed: Whether the core belief was reached
    """

    id: UUID
    title: str
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)
    messages: list[ChatTurn] = field(default_factory=list)
    current_layer: IcebergLayer = IcebergLayer.SURFACE
    core_belief: Optional[str] = None
    completed: bool = False

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "messageCount": len(self.messages),
            "currentLayer": self.current_layer.value,
            "coreBelief": self.core_belief,
            "isCompleted": self.completed,
        }


class SessionStore(Protocol):
    """Call/return shape of the session persistence collaborator."""

    async def create_session(self, first_message: str) -> SessionRecord:
        ...

    async def get_session_history(self, session_id: UUID) -> list[ChatTurn]:
        ...

    async def append_message(self, session_id: UUID, message: ChatTurn) -> None:
        ...

    async def record_layer(self, session_id: UUID, layer: IcebergLayer) -> None:
        ...

    async def mark_session_complete(self, session_id: UUID, core_belief_text: str) -> None:
        ...


class InMemorySessionStore:
    """
    Process-local SessionStore.

    Contents are lost on restart.
    """

    TITLE_LENGTH = 50

    def __init__(self) -> None:
        self._sessions: dict[UUID, SessionRecord] = {}
        self._lock = asyncio.Lock()

    async def create_session(self, first_message: str) -> SessionRecord:
        """Create a session titled after its first message."""
        title = (first_message or "").strip()[: self.TITLE_LENGTH] or "New Session"
        record = SessionRecord(id=uuid4(), title=title)

        async with self._lock:
            self._sessions[record.id] = record

        logger.info("Session created", session_id=str(record.id))
        return record

    async def get_session(self, session_id: UUID) -> SessionRecord:
        record = self._sessions.get(session_id)
        if record is None:
            raise SessionNotFound(str(session_id))
        return record

    async def get_session_history(self, session_id: UUID) -> list[ChatTurn]:
        """Turns of a session in order."""
        record = await self.get_session(session_id)
        return list(record.messages)

    async def append_message(self, session_id: UUID, message: ChatTurn) -> None:
        async with self._lock:
            record = await self.get_session(session_id)
            record.messages.append(message)
            record.updated_at = _utc_now()

        logger.debug("Message appended", session_id=str(session_id), role=message.role)

    async def record_layer(self, session_id: UUID, layer: IcebergLayer) -> None:
        """Move the session down to layer. A shallower layer is ignored."""
        async with self._lock:
            record = await self.get_session(session_id)
            record.current_layer = IcebergLayer.deepest(record.current_layer, layer)
            record.updated_at = _utc_now()

    async def mark_session_complete(self, session_id: UUID, core_belief_text: str) -> None:
        """Record the core belief and close the session."""
        async with self._lock:
            record = await self.get_session(session_id)
            record.current_layer = IcebergLayer.CORE_BELIEF
            record.core_belief = core_belief_text
            record.completed = True
            record.updated_at = _utc_now()

        logger.info("Session completed", session_id=str(session_id))

    async def list_sessions(self) -> list[SessionRecord]:
        """Newest first."""
        return sorted(self._sessions.values(), key=lambda s: s.created_at, reverse=True)
