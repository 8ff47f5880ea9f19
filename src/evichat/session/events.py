"""Notifications published by the session controller.

UIs subscribe and render from these; they never mutate session state.
"""

import asyncio
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from ..chat.models import ChatEntry
from .state import ConnectionState


class SessionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)


class EntryAppended(SessionEvent):
    entry: ChatEntry


class EntryRetracted(SessionEvent):
    entry: ChatEntry


class ConnectionChanged(SessionEvent):
    state: ConnectionState


class MuteChanged(SessionEvent):
    muted: bool


class Subscription:
    """Async iterator over session notifications.

    Usage:
        async with controller.subscribe() as events:
            async for event in events:
                render(event)
    """

    def __init__(self, on_close: Callable[["Subscription"], None]) -> None:
        self._queue: asyncio.Queue[SessionEvent | None] = asyncio.Queue()
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, event: SessionEvent) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def drain(self) -> list[SessionEvent]:
        """Return every notification queued so far without waiting."""
        events = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not None:
                events.append(item)
        return events

    def close(self) -> None:
        """Stop receiving notifications; pending iteration ends."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)
        self._on_close(self)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> SessionEvent:
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.close()
