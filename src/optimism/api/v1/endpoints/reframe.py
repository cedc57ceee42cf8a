"""
Reframe Endpoint

Runs one turn of the reframe pipeline. Optionally persists the turn
when the caller passes a session id.
"""

from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from optimism.api.dependencies import get_pipeline, get_session_store
from optimism.config.logging_config import get_logger
from optimism.domain.exceptions import ValidationError
from optimism.domain.models import ChatTurn, ConversationState, SessionHints
from optimism.infrastructure.llm import ProviderOverride
from optimism.infrastructure.persistence import InMemorySessionStore
from optimism.infrastructure.rate_limit import client_identifier
from optimism.services.orchestration import ReframePipeline
from optimism.services.validation import validate_message, validate_session_id

logger = get_logger(__name__)
router = APIRouter()


# Request Models

class HistoryTurn(BaseModel):
    """One prior message as sent by the client."""

    role: Literal["user", "assistant"]
    content: str

    def to_turn(self) -> ChatTurn:
        return ChatTurn(role=self.role, content=self.content)


class ReframeRequest(BaseModel):
    """
    Reframe request body.

    user_message is left untyped so non-string input reaches the
    pipeline's validator and is rejected with 400, after admission.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "userMessage": "My manager ignored my idea in the meeting again.",
                "conversationHistory": [],
                "sessionContext": {"sessionCount": 2},
            }
        },
    )

    user_message: Any = Field(default=None, alias="userMessage")
    conversation_history: list[HistoryTurn] = Field(default_factory=list, alias="conversationHistory")
    session_context: Optional[SessionHints] = Field(default=None, alias="sessionContext")
    conversation_state: Optional[dict] = Field(default=None, alias="conversationState")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    provider_config: Optional[ProviderOverride] = Field(default=None, alias="providerConfig")


@router.post(
    "",
    summary="Reframe a thought",
    description="Two-phase reframe of a user message with crisis short-circuit",
)
async def reframe(
    body: ReframeRequest,
    request: Request,
    pipeline: ReframePipeline = Depends(get_pipeline),
    store: InMemorySessionStore = Depends(get_session_store),
) -> dict:
    """
    Run one reframe turn.

    When sessionId is given and conversationHistory is empty, history is
    loaded from the session store, and the turn is persisted afterwards.
    """
    client_id = client_identifier(
        request.headers,
        request.client.host if request.client else None,
    )
    # Admitted here so session lookups and state errors count too
    await pipeline.admit(client_id)

    session_id = None
    history = [turn.to_turn() for turn in body.conversation_history]
    if body.session_id is not None:
        session_id = validate_session_id(body.session_id)
        stored = await store.get_session_history(session_id)
        if not history:
            history = stored

    state = None
    if body.conversation_state:
        try:
            state = ConversationState.from_dict(body.conversation_state)
        except (TypeError, ValueError) as e:
            raise ValidationError("Invalid conversation state") from e

    result = await pipeline.run(
        body.user_message,
        history=history,
        hints=body.session_context,
        state=state,
        override=body.provider_config,
    )

    if session_id is not None:
        await pipeline.persist_turn(
            store,
            session_id,
            validate_message(body.user_message),
            result,
        )
        logger.debug("Reframe turn persisted", session_id=str(session_id))

    return result.to_dict()
