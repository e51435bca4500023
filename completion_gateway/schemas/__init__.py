"""
Request and response bodies of the HTTP surface.
"""

from .ai import (
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

__all__ = [
    "ClearConversationResponse",
    "ConversationData",
    "ConversationMessage",
    "ConversationResponse",
    "GenerateRequest",
    "GenerateResponse",
    "HealthResponse",
    "SingleRequest",
    "SingleResponse",
]
