"""EVI message codec.

Hides the JSON envelope format of the streaming protocol behind a closed
set of typed events.
"""

from .codec import (
    EVENT_TYPES,
    decode_frame,
    encode_audio_input,
    encode_session_settings,
    encode_user_input,
    parse_frame,
    top_three,
)
from .models import (
    AssistantMessageEvent,
    AudioOutputEvent,
    ChatMessage,
    ChatMetadataEvent,
    EmotionScore,
    ErrorEvent,
    InboundEvent,
    UnknownEvent,
    UserInterruptionEvent,
    UserMessageEvent,
)

__all__ = [
    "EVENT_TYPES",
    "decode_frame",
    "encode_audio_input",
    "encode_session_settings",
    "encode_user_input",
    "parse_frame",
    "top_three",
    "AssistantMessageEvent",
    "AudioOutputEvent",
    "ChatMessage",
    "ChatMetadataEvent",
    "EmotionScore",
    "ErrorEvent",
    "InboundEvent",
    "UnknownEvent",
    "UserInterruptionEvent",
    "UserMessageEvent",
]
