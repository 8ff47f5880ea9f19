from .base import RetrievalProvider
from .factory import create_retrieval_provider, retrieval_from_settings
from .models import AssistantChatRequest, AssistantMessage
from .providers import PineconeAssistantProvider

__all__ = [
    "RetrievalProvider",
    "create_retrieval_provider",
    "retrieval_from_settings",
    "AssistantChatRequest",
    "AssistantMessage",
    "PineconeAssistantProvider",
]
