"""
Completion routes.

- POST /v1/ai/generate: one conversational turn
- POST /v1/ai/single: stateless completion
- GET/DELETE /v1/ai/conversation/{session_id}: inspect or drop a conversation
- GET /v1/ai/health: model availability; also sweeps expired sessions
"""

import secrets
import string
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from completion_gateway.deps import get_completion_service
from completion_gateway.errors import not_found
from completion_gateway.logging_config import logger
from completion_gateway.schemas import (
    ClearConversationResponse,
    ConversationData,
    ConversationMessage,
    ConversationResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    SingleRequest,
    SingleResponse,
)
from completion_gateway.services import CompletionService

router = APIRouter(tags=["ai"], prefix="/v1/ai")

_SESSION_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def new_session_id() -> str:
    suffix = "".join(secrets.choice(_SESSION_SUFFIX_ALPHABET) for _ in range(9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    payload: GenerateRequest,
    service: CompletionService = Depends(get_completion_service),
) -> GenerateResponse:
    session_id = payload.session_id or new_session_id()
    result = await service.generate_response(session_id, payload.message, payload.to_options())
    return GenerateResponse(data=result, session_id=session_id, timestamp=_utcnow())


@router.post("/single", response_model=SingleResponse)
async def single(
    payload: SingleRequest,
    service: CompletionService = Depends(get_completion_service),
) -> SingleResponse:
    result = await service.get_single_response(payload.message, payload.to_options())
    logger.info("Successfully generated single response using %s", result.model_used)
    return SingleResponse(data=result, timestamp=_utcnow())


@router.get("/conversation/{session_id}", response_model=ConversationResponse)
async def get_conversation(
    session_id: str,
    service: CompletionService = Depends(get_completion_service),
) -> ConversationResponse:
    stats = service.get_conversation_stats(session_id)
    if stats is None:
        raise not_found("Conversation not found", details={"session_id": session_id})

    messages = [
        ConversationMessage(role=m.role, content=m.content)
        for m in service.get_conversation_messages(session_id)
    ]
    return ConversationResponse(data=ConversationData(stats=stats, messages=messages))


@router.delete("/conversation/{session_id}", response_model=ClearConversationResponse)
async def clear_conversation(
    session_id: str,
    service: CompletionService = Depends(get_completion_service),
) -> ClearConversationResponse:
    await service.clear_conversation(session_id)
    return ClearConversationResponse(message=f"Conversation {session_id} cleared")


@router.get("/health", response_model=HealthResponse)
async def health(
    service: CompletionService = Depends(get_completion_service),
) -> HealthResponse:
    models = service.get_model_status()
    cleaned = service.cleanup_expired_sessions()
    return HealthResponse(
        timestamp=_utcnow(),
        models=models,
        active_sessions=service.store.active_count(),
        cleaned_sessions=cleaned,
    )


__all__ = ["new_session_id", "router"]
