"""In-memory audio bridge.

Backs capture and playback with plain queues. Suitable for text-only
sessions, headless use and testing.
"""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator

from .base import AudioBridge

logger = logging.getLogger(__name__)


class QueueAudioBridge(AudioBridge):
    """Audio bridge whose microphone and speaker are queues.

    Feed the capture side with push_capture(); drain the playback side with
    dequeue(). Chunks pushed while not recording are dropped, like a muted
    microphone.
    """

    def __init__(self) -> None:
        self._recording = False
        self._capture: asyncio.Queue[str | None] = asyncio.Queue()
        self._playback: deque[str] = deque()
        self.played: list[str] = []
        self.dropped = 0

    @property
    def is_recording(self) -> bool:
        return self._recording

    async def start_recording(self) -> None:
        if self._recording:
            return
        self._capture = asyncio.Queue()
        self._recording = True
        logger.debug("Recording started")

    async def stop_recording(self) -> None:
        if not self._recording:
            return
        self._recording = False
        self._capture.put_nowait(None)
        logger.debug("Recording stopped")

    def push_capture(self, chunk: str) -> None:
        """Simulate the microphone producing one base64 chunk."""
        if self._recording:
            self._capture.put_nowait(chunk)

    async def audio_stream(self) -> AsyncIterator[str]:
        queue = self._capture
        while True:
            chunk = await queue.get()
            if chunk is None:
                return
            yield chunk

    def enqueue_audio(self, data: str) -> None:
        self._playback.append(data)

    def dequeue(self) -> str | None:
        """Hand the next queued segment to the speaker, or None when idle."""
        if not self._playback:
            return None
        data = self._playback.popleft()
        self.played.append(data)
        return data

    def stop_playback(self) -> None:
        self.dropped += len(self._playback)
        self._playback.clear()

    @property
    def is_playing(self) -> bool:
        return bool(self._playback)

    @property
    def queued(self) -> list[str]:
        return list(self._playback)

    async def close(self) -> None:
        await self.stop_recording()
        self.stop_playback()
