from .completion_service import CompletionService
from .conversation_service import ConversationStore

__all__ = ["CompletionService", "ConversationStore"]
