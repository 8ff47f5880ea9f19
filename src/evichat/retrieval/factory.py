from typing import Any

from ..config import RetrievalSettings
from .base import RetrievalProvider
from .providers import PineconeAssistantProvider


def create_retrieval_provider(provider: str, **config: Any) -> RetrievalProvider:
    """Create a retrieval provider instance.

    This factory function hides the instantiation logic for different providers.

    Args:
        provider: Provider type ('pinecone')
        **config: Provider-specific configuration
            For Pinecone:
                - api_key: str (required)
                - assistant_name: str (default: 'tes')
                - base_url: str (default: 'https://prod-1-data.ke.pinecone.io')
                - model: str (default: 'gpt-4o')

    Returns:
        Initialized retrieval provider instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> provider = create_retrieval_provider(
        ...     "pinecone",
        ...     api_key="pc-...",
        ...     assistant_name="nissan-support"
        ... )
    """
    if provider.lower() == "pinecone":
        if "api_key" not in config:
            raise TypeError("Pinecone provider requires 'api_key' in config")
        return PineconeAssistantProvider(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'pinecone'"
    )


def retrieval_from_settings(settings: RetrievalSettings, **client_kwargs: Any) -> RetrievalProvider:
    """Create the Pinecone provider described by a ChatConfig's retrieval settings."""
    return create_retrieval_provider("pinecone", **settings.model_dump(), **client_kwargs)
