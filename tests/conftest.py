"""Pytest configuration and shared fixtures."""
import asyncio
import json
import os
from typing import Any
from unittest.mock import AsyncMock

import pytest

from evichat.audio import QueueAudioBridge
from evichat.config import ChatConfig, Credentials
from evichat.retrieval import RetrievalProvider
from evichat.session import SessionController
from evichat.tts import SpeechSynthesizer


class FakeWebSocket:
    """Stand-in for a websockets client connection.

    Inbound frames are fed with feed(); finish() simulates the server
    closing the connection and fail() an abnormal close. With send_yields
    each write suspends that many times, and overlapping writes are counted.
    """

    def __init__(self, send_yields: int = 0) -> None:
        self.sent: list[str] = []
        self.closed = False
        self.send_yields = send_yields
        self.overlapping_writes = 0
        self._writing = False
        self._inbound: asyncio.Queue[Any] = asyncio.Queue()

    def feed(self, frame: str | dict) -> None:
        self._inbound.put_nowait(json.dumps(frame) if isinstance(frame, dict) else frame)

    def finish(self) -> None:
        self._inbound.put_nowait(None)

    def fail(self, error: Exception) -> None:
        self._inbound.put_nowait(error)

    async def send(self, frame: str) -> None:
        if self._writing:
            self.overlapping_writes += 1
        self._writing = True
        try:
            for _ in range(self.send_yields):
                await asyncio.sleep(0)
            self.sent.append(frame)
        finally:
            self._writing = False

    async def close(self) -> None:
        self.closed = True
        self._inbound.put_nowait(None)

    def sent_json(self) -> list[dict]:
        return [json.loads(frame) for frame in self.sent]

    def sent_types(self) -> list[str]:
        return [frame["type"] for frame in self.sent_json()]

    def __aiter__(self) -> "FakeWebSocket":
        return self

    async def __anext__(self) -> str:
        item = await self._inbound.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item


class FakeConnector:
    """Connector that hands out one FakeWebSocket and records target URLs.

    When a gate is given, opening the socket waits until the gate is set.
    """

    def __init__(
        self,
        socket: FakeWebSocket | None = None,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ):
        self.socket = socket or FakeWebSocket()
        self.error = error
        self.gate = gate
        self.urls: list[str] = []

    async def __call__(self, url: str) -> FakeWebSocket:
        self.urls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.socket


async def _run_pending(rounds: int = 20) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Let background tasks (receive loop, capture loop) make progress."""
    return _run_pending


@pytest.fixture
def make_socket():
    """Factory for fake websockets."""
    return FakeWebSocket


@pytest.fixture
def make_connector():
    """Factory for fake connectors."""
    return FakeConnector


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "hume": os.getenv("HUME_API_KEY"),
        "pinecone": os.getenv("PINECONE_API_KEY"),
    }


@pytest.fixture
def config():
    """Config with an API key and no retrieval or TTS."""
    return ChatConfig(credentials=Credentials(api_key="ABC"), tts_enabled=False)


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def audio():
    return QueueAudioBridge()


@pytest.fixture
def retrieval():
    provider = AsyncMock(spec=RetrievalProvider)
    provider.query.return_value = "Check monthly"
    return provider


@pytest.fixture
def synthesizer():
    tts = AsyncMock(spec=SpeechSynthesizer)
    tts.synthesize.return_value = b"mp3-bytes"
    return tts


@pytest.fixture
def controller(config, audio, connector):
    """Controller without knowledge base or speech."""
    return SessionController(config, audio, connector=connector)


@pytest.fixture
def kb_controller(audio, connector, retrieval, synthesizer):
    """Controller with mocked knowledge base and speech synthesis."""
    config = ChatConfig(credentials=Credentials(api_key="ABC"))
    return SessionController(
        config,
        audio,
        retrieval=retrieval,
        synthesizer=synthesizer,
        connector=connector,
    )
