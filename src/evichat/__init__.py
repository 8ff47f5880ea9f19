"""evichat: session core for an empathic voice chat client.

Bridges a user interface to a streaming voice/emotion API and a
knowledge-base assistant, keeping one ordered chat history.
"""

__version__ = "0.1.0"

from .chat import ChatEntry, ChatLog, Role
from .config import ChatConfig, Credentials, RetrievalSettings
from .errors import ConfigurationError, DecodeError, EviChatError, TransportError
from .session import ConnectionState, SessionController

__all__ = [
    "ChatConfig",
    "ChatEntry",
    "ChatLog",
    "ConfigurationError",
    "ConnectionState",
    "Credentials",
    "DecodeError",
    "EviChatError",
    "RetrievalSettings",
    "Role",
    "SessionController",
    "TransportError",
]
