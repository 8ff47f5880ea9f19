from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any


class SpeechSynthesizer(ABC):
    """Abstract base class for text-to-speech services.

    This module hides the design decision of which voice service is used.
    Implementations must handle:
    - API client setup and authentication
    - The voice persona attached to each utterance
    - Audio payload decoding (base64 to raw bytes)
    - Turning every failure into a None result instead of raising
    """

    @abstractmethod
    async def synthesize(self, text: str) -> bytes | None:
        """Convert text to encoded audio.

        Args:
            text: Text to speak

        Returns:
            Audio bytes (mp3), or None if synthesis failed
        """
        pass

    @abstractmethod
    def synthesize_stream(self, text: str) -> AsyncIterator[bytes]:
        """Stream audio chunks for text as they are generated.

        Malformed chunks are skipped; failures end the stream early.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "SpeechSynthesizer":
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
