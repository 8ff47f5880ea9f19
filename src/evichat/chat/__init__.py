"""Chat log module.

Holds the ordered conversation shown to the user. Data lives in memory
only and is lost when the session object goes away.
"""

from .log import APPENDED, RETRACTED, ChatLog, ChatLogListener
from .models import ChatEntry, Role

__all__ = [
    "APPENDED",
    "RETRACTED",
    "ChatEntry",
    "ChatLog",
    "ChatLogListener",
    "Role",
]
