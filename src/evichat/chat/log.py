"""Append-only chat log.

Entries are never edited. The single exception to append-only is removing
a placeholder entry once the answer it stood in for has resolved.
"""

import logging
from collections.abc import Callable, Iterator

from .models import ChatEntry

logger = logging.getLogger(__name__)

ChatLogListener = Callable[[str, ChatEntry], None]

APPENDED = "appended"
RETRACTED = "retracted"


class ChatLog:
    """Ordered sequence of chat entries.

    Listeners are called synchronously with ``(change, entry)`` where
    change is ``"appended"`` or ``"retracted"``.
    """

    def __init__(self) -> None:
        self._entries: list[ChatEntry] = []
        self._listeners: list[ChatLogListener] = []

    def add_listener(self, listener: ChatLogListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChatLogListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, change: str, entry: ChatEntry) -> None:
        for listener in list(self._listeners):
            listener(change, entry)

    def append(self, entry: ChatEntry) -> ChatEntry:
        """Append an entry and return it."""
        self._entries.append(entry)
        self._notify(APPENDED, entry)
        return entry

    def remove_last(self) -> ChatEntry:
        """Remove the most recent entry, which must be a placeholder.

        Raises:
            ValueError: If the log is empty or the last entry is a real entry
        """
        if not self._entries:
            raise ValueError("chat log is empty")
        if not self._entries[-1].placeholder:
            raise ValueError("only placeholder entries can be removed")
        entry = self._entries.pop()
        self._notify(RETRACTED, entry)
        return entry

    def retract(self, entry: ChatEntry) -> bool:
        """Remove a specific placeholder, wherever later appends left it.

        Returns:
            True if the placeholder was found and removed
        """
        if not entry.placeholder:
            raise ValueError("only placeholder entries can be retracted")
        for index in range(len(self._entries) - 1, -1, -1):
            if self._entries[index].entry_id == entry.entry_id:
                del self._entries[index]
                self._notify(RETRACTED, entry)
                return True
        logger.debug("Placeholder %s already gone", entry.entry_id)
        return False

    def snapshot(self) -> tuple[ChatEntry, ...]:
        """Return a consistent, read-only view of the current entries."""
        return tuple(self._entries)

    def last(self) -> ChatEntry | None:
        return self._entries[-1] if self._entries else None

    def to_transcript(self) -> str:
        """Render the log as ``role: content`` lines, skipping placeholders."""
        return "\n".join(
            f"{entry.role.value}: {entry.content}"
            for entry in self._entries
            if not entry.placeholder
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ChatEntry]:
        return iter(self.snapshot())
