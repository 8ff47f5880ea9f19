"""Audio bridge module.

The platform audio stack is an external collaborator; this package defines
the interface the session drives and an in-memory implementation.
"""

from .base import AudioBridge
from .memory import QueueAudioBridge

__all__ = ["AudioBridge", "QueueAudioBridge"]
