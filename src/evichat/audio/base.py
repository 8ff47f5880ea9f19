from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any


class AudioBridge(ABC):
    """Abstract audio capture/playback device.

    This module hides the platform audio stack. The session controller only
    drives it; implementations must handle:
    - Microphone capture as mono linear16 PCM at 48 kHz, base64 encoded
    - A FIFO playback queue of base64 encoded audio segments
    - Dropping queued segments when playback is stopped

    Supports async context manager protocol for proper resource cleanup:
        async with bridge:
            await bridge.start_recording()
    """

    @abstractmethod
    async def start_recording(self) -> None:
        """Open the microphone; audio_stream() starts yielding chunks."""
        pass

    @abstractmethod
    async def stop_recording(self) -> None:
        """Close the microphone and end the current audio_stream()."""
        pass

    @abstractmethod
    def audio_stream(self) -> AsyncIterator[str]:
        """Yield base64 PCM chunks until recording stops."""
        pass

    @abstractmethod
    def enqueue_audio(self, data: str) -> None:
        """Queue a base64 encoded audio segment for playback, in order."""
        pass

    @abstractmethod
    def stop_playback(self) -> None:
        """Halt the current segment and drop everything still queued."""
        pass

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        """True while audio is playing or queued."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the audio device."""
        pass

    async def __aenter__(self) -> "AudioBridge":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
