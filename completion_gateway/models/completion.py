from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .model_candidate import TaskType
from .session import ConversationStats
from .usage import Usage


class CompletionOptions(BaseModel):
    """
    Per-request overrides; unset values fall back to configured defaults.
    """

    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1, le=2000)
    system_prompt: Optional[str] = Field(
        default=None, description="Seeded as the first message of a new conversation"
    )
    task_type: TaskType = Field(default=TaskType.TEXT_GENERATION)


class SingleCompletionResult(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    response: str = Field(..., description="Assistant reply text")
    model_used: str = Field(..., description="Model that produced the reply")
    usage: Optional[Usage] = None


class CompletionResult(SingleCompletionResult):
    conversation_stats: Optional[ConversationStats] = None
    message_count: int = Field(
        ..., description="Number of messages sent upstream for this turn", ge=0
    )


class ModelStatus(BaseModel):
    model: str
    name: str
    rate_limit: str = Field(..., description="Informational limit, e.g. '300 req/min'")
    status: Literal["available", "rate_limited"]


__all__ = [
    "CompletionOptions",
    "CompletionResult",
    "ModelStatus",
    "SingleCompletionResult",
]
