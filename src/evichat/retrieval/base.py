from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any


class RetrievalProvider(ABC):
    """Abstract base class for knowledge-base assistants.

    This module hides the design decision of which retrieval service answers
    questions. Implementations must handle:
    - HTTP client setup and authentication
    - Wrapping questions in the domain-context template
    - Turning every failure into a "no answer" result instead of raising

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            answer = await provider.query("tire pressure")
    """

    @abstractmethod
    async def query(self, question: str) -> str | None:
        """Answer a user question, wrapped in the domain-context template.

        Args:
            question: The user's question as typed or transcribed

        Returns:
            Answer text, or None when no answer could be obtained
        """
        pass

    @abstractmethod
    async def query_raw(self, prompt: str) -> str | None:
        """Send a prompt as-is, without the domain-context template."""
        pass

    @abstractmethod
    def query_stream(self, question: str) -> AsyncIterator[str]:
        """Stream answer fragments for a user question.

        The returned iterator is lazy, finite and can be consumed once.
        Malformed chunks are skipped; failures end the stream early.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "RetrievalProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
