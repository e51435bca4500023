from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .usage import Usage

MessageRole = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """
    One entry of a conversation; never modified once appended.
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole = Field(..., description="Author role")
    content: str = Field(..., description="Message text")
    timestamp: float = Field(..., description="Append time (epoch seconds)")
    model: Optional[str] = Field(
        default=None, description="Upstream model that produced an assistant reply"
    )
    usage: Optional[Usage] = Field(
        default=None, description="Token usage reported for an assistant reply"
    )


class Session(BaseModel):
    """
    In-memory conversation state for one session id.
    """

    session_id: str = Field(..., description="Opaque conversation identifier")
    messages: List[Message] = Field(
        default_factory=list, description="Chronological message history"
    )
    created_at: float = Field(..., description="Creation timestamp (epoch seconds)")
    last_activity: float = Field(
        ..., description="Last append timestamp (epoch seconds)"
    )
    total_messages: int = Field(
        default=0, description="Messages appended over the session lifetime", ge=0
    )


class ConversationStats(BaseModel):
    session_id: str
    message_count: int = Field(..., description="Messages currently kept", ge=0)
    total_messages: int = Field(..., description="Messages appended in total", ge=0)
    created_at: datetime
    last_activity: datetime
    duration_ms: int = Field(..., description="Milliseconds since creation", ge=0)


__all__ = ["ConversationStats", "Message", "MessageRole", "Session"]
