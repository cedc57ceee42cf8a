"""
Session Endpoints

Thin surface over the session store collaborator: create a session,
read and append its messages, mark it complete.
"""

from typing import Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from optimism.api.dependencies import get_session_store
from optimism.domain.models import ChatTurn
from optimism.infrastructure.persistence import InMemorySessionStore
from optimism.services.validation import sanitize_string, validate_session_id

router = APIRouter()


# Request Models

class CreateSessionRequest(BaseModel):
    """Request to create a new session."""

    model_config = ConfigDict(populate_by_name=True)

    first_message: str = Field(default="", alias="firstMessage")


class AppendMessageRequest(BaseModel):
    """One message to append to a session."""

    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)


class CompleteSessionRequest(BaseModel):
    """Core belief that closed the session."""

    model_config = ConfigDict(populate_by_name=True)

    core_belief: str = Field(..., min_length=1, alias="coreBelief")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new session",
)
async def create_session(
    request: CreateSessionRequest,
    store: InMemorySessionStore = Depends(get_session_store),
) -> dict:
    """Create a session titled after its first message."""
    record = await store.create_session(sanitize_string(request.first_message))
    return {"session": record.to_dict()}


@router.get(
    "",
    summary="List sessions",
)
async def list_sessions(
    store: InMemorySessionStore = Depends(get_session_store),
) -> dict:
    sessions = await store.list_sessions()
    return {"sessions": [record.to_dict() for record in sessions]}


@router.get(
    "/{session_id}/messages",
    summary="Session transcript",
)
async def get_messages(
    session_id: str,
    store: InMemorySessionStore = Depends(get_session_store),
) -> dict:
    history = await store.get_session_history(validate_session_id(session_id))
    return {"messages": [turn.to_message() for turn in history]}


@router.post(
    "/{session_id}/messages",
    status_code=status.HTTP_201_CREATED,
    summary="Append a message",
)
async def append_message(
    session_id: str,
    request: AppendMessageRequest,
    store: InMemorySessionStore = Depends(get_session_store),
) -> dict:
    """Append one message. Content is sanitized before storage."""
    session_uuid = validate_session_id(session_id)
    turn = ChatTurn(role=request.role, content=sanitize_string(request.content))
    await store.append_message(session_uuid, turn)
    return {"message": turn.to_message()}


@router.post(
    "/{session_id}/complete",
    summary="Mark session complete",
)
async def complete_session(
    session_id: str,
    request: CompleteSessionRequest,
    store: InMemorySessionStore = Depends(get_session_store),
) -> dict:
    session_uuid = validate_session_id(session_id)
    await store.mark_session_complete(session_uuid, sanitize_string(request.core_belief))
    record = await store.get_session(session_uuid)
    return {"session": record.to_dict()}
