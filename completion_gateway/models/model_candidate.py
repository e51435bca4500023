from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class TaskType(str, Enum):
    """
    Kind of work a candidate list is ranked for.
    """

    TEXT_GENERATION = "text_generation"
    EMBEDDINGS = "embeddings"


class ModelCapability(str, Enum):
    """
    Capability flags for a model, e.g. chat vs embedding.
    """

    CHAT = "chat"
    COMPLETION = "completion"
    EMBEDDING = "embedding"


class ModelCandidate(BaseModel):
    """
    One upstream model that may serve a request, ranked by static priority.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Model identifier on the provider side")
    name: str = Field(..., description="Human readable display name")
    rate_limit: int = Field(
        ..., description="Provider rate limit hint in requests per minute (informational)", gt=0
    )
    priority: int = Field(..., description="Lower values are tried first")
    max_tokens: int | None = Field(
        None, description="Maximum completion tokens the model accepts", gt=0
    )
    capabilities: List[ModelCapability] = Field(
        default_factory=list, description="List of supported capabilities"
    )


__all__ = ["ModelCandidate", "ModelCapability", "TaskType"]
