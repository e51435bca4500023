from .completion import (
    CompletionOptions,
    CompletionResult,
    ModelStatus,
    SingleCompletionResult,
)
from .model_candidate import ModelCandidate, ModelCapability, TaskType
from .session import ConversationStats, Message, MessageRole, Session
from .usage import Usage

__all__ = [
    "CompletionOptions",
    "CompletionResult",
    "ConversationStats",
    "Message",
    "MessageRole",
    "ModelCandidate",
    "ModelCapability",
    "ModelStatus",
    "Session",
    "SingleCompletionResult",
    "TaskType",
    "Usage",
]
