"""Data models for the chat log."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..protocol.models import EmotionScore


class Role(str, Enum):
    """Who produced a chat entry."""

    USER = "user"
    ASSISTANT = "assistant"


class ChatEntry(BaseModel):
    """One immutable line of the conversation.

    Placeholder entries stand in for a pending answer (e.g. "Searching
    knowledge base...") and are the only entries a ChatLog lets you remove.
    """

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid4()))
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)
    scores: list[EmotionScore] = Field(default_factory=list, max_length=3)
    placeholder: bool = Field(default=False, description="Transient loading indicator")

    @classmethod
    def user(cls, content: str, scores: list[EmotionScore] | None = None) -> "ChatEntry":
        return cls(role=Role.USER, content=content, scores=scores or [])

    @classmethod
    def assistant(cls, content: str, scores: list[EmotionScore] | None = None) -> "ChatEntry":
        return cls(role=Role.ASSISTANT, content=content, scores=scores or [])

    @classmethod
    def loading(cls, content: str) -> "ChatEntry":
        return cls(role=Role.ASSISTANT, content=content, placeholder=True)
