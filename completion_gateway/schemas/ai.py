from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from completion_gateway.models import (
    CompletionOptions,
    CompletionResult,
    ConversationStats,
    MessageRole,
    ModelStatus,
    SingleCompletionResult,
    TaskType,
)

MAX_MESSAGE_LENGTH = 4000


class SingleRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1, le=2000)

    def to_options(self) -> CompletionOptions:
        return CompletionOptions(temperature=self.temperature, max_tokens=self.max_tokens)


class GenerateRequest(SingleRequest):
    session_id: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Conversation to continue; a new id is generated when omitted",
    )
    system_prompt: Optional[str] = Field(
        default=None, description="Only applied when the conversation is empty"
    )
    task_type: TaskType = Field(default=TaskType.TEXT_GENERATION)

    def to_options(self) -> CompletionOptions:
        return CompletionOptions(
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            system_prompt=self.system_prompt,
            task_type=self.task_type,
        )


class GenerateResponse(BaseModel):
    success: bool = True
    data: CompletionResult
    session_id: str
    timestamp: datetime


class SingleResponse(BaseModel):
    success: bool = True
    data: SingleCompletionResult
    timestamp: datetime


class ConversationMessage(BaseModel):
    role: MessageRole
    content: str


class ConversationData(BaseModel):
    stats: ConversationStats
    messages: list[ConversationMessage]


class ConversationResponse(BaseModel):
    success: bool = True
    data: ConversationData


class ClearConversationResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: Literal["healthy"] = "healthy"
    timestamp: datetime
    models: list[ModelStatus]
    active_sessions: int = Field(..., ge=0)
    cleaned_sessions: int = Field(..., ge=0)


__all__ = [
    "ClearConversationResponse",
    "ConversationData",
    "ConversationMessage",
    "ConversationResponse",
    "GenerateRequest",
    "GenerateResponse",
    "HealthResponse",
    "MAX_MESSAGE_LENGTH",
    "SingleRequest",
    "SingleResponse",
]
