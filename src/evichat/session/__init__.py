"""Session controller module.

Hides the EVI websocket lifecycle, frame dispatch and the concurrency
between the socket and the HTTP side queries.
"""

from .controller import (
    KNOWLEDGE_BASE_PREFIX,
    KNOWLEDGE_INSIGHT_PREFIX,
    RETRIEVAL_FAILED_MESSAGE,
    SEARCHING_MESSAGE,
    Connector,
    SessionController,
    default_connector,
)
from .events import (
    ConnectionChanged,
    EntryAppended,
    EntryRetracted,
    MuteChanged,
    SessionEvent,
    Subscription,
)
from .state import ConnectionState, SessionState
from .url import EVI_CHAT_PATH, build_chat_url, redact_url

__all__ = [
    "KNOWLEDGE_BASE_PREFIX",
    "KNOWLEDGE_INSIGHT_PREFIX",
    "RETRIEVAL_FAILED_MESSAGE",
    "SEARCHING_MESSAGE",
    "Connector",
    "SessionController",
    "default_connector",
    "ConnectionChanged",
    "EntryAppended",
    "EntryRetracted",
    "MuteChanged",
    "SessionEvent",
    "Subscription",
    "ConnectionState",
    "SessionState",
    "EVI_CHAT_PATH",
    "build_chat_url",
    "redact_url",
]
