from .pinecone import PineconeAssistantProvider

__all__ = ["PineconeAssistantProvider"]
