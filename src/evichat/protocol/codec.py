"""Frame codec for the EVI websocket protocol.

Decoding never fails the connection: anything that cannot be mapped onto
a known event comes back as an UnknownEvent carrying the raw frame.
"""

import json
import logging
from collections.abc import Mapping

from pydantic import ValidationError

from ..errors import DecodeError
from .models import (
    AssistantMessageEvent,
    AudioInput,
    AudioOutputEvent,
    ChatMetadataEvent,
    EmotionScore,
    ErrorEvent,
    InboundEvent,
    SessionSettings,
    UnknownEvent,
    UserInput,
    UserInterruptionEvent,
    UserMessageEvent,
)

logger = logging.getLogger(__name__)

EVENT_TYPES: dict[str, type[InboundEvent]] = {
    "error": ErrorEvent,
    "chat_metadata": ChatMetadataEvent,
    "audio_output": AudioOutputEvent,
    "user_interruption": UserInterruptionEvent,
    "assistant_message": AssistantMessageEvent,
    "user_message": UserMessageEvent,
}

TOP_EMOTIONS = 3


def _as_text(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


def parse_frame(raw: str | bytes) -> InboundEvent:
    """Strictly decode one inbound frame.

    Unrecognized ``type`` values are not an error; they produce an
    UnknownEvent.

    Raises:
        DecodeError: If the frame is not a JSON object or its payload does
            not match the model for its type
    """
    text = _as_text(raw)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON: {e.msg}", raw=text) from e

    if not isinstance(payload, dict):
        raise DecodeError("frame is not a JSON object", raw=text)

    frame_type = payload.get("type")
    event_cls = EVENT_TYPES.get(frame_type) if isinstance(frame_type, str) else None
    if event_cls is None:
        return UnknownEvent(type=str(frame_type or ""), raw=text)

    try:
        return event_cls.model_validate({**payload, "raw": text})
    except ValidationError as e:
        raise DecodeError(f"invalid {frame_type} frame: {e.error_count()} errors", raw=text) from e


def decode_frame(raw: str | bytes) -> InboundEvent:
    """Decode one inbound frame, degrading every failure to UnknownEvent."""
    try:
        return parse_frame(raw)
    except DecodeError as e:
        logger.warning("%s", e)
        return UnknownEvent(raw=e.raw if e.raw is not None else _as_text(raw))


def top_three(scores: Mapping[str, float]) -> list[EmotionScore]:
    """Return the three highest-scoring emotions, highest first.

    Ties keep the mapping's original order (sorted() is stable).
    """
    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    return [EmotionScore(label=label, score=score) for label, score in ranked[:TOP_EMOTIONS]]


def encode_session_settings() -> str:
    """Declare the inbound audio format: mono linear16 PCM at 48 kHz."""
    return SessionSettings().model_dump_json()


def encode_user_input(text: str) -> str:
    return UserInput(text=text).model_dump_json()


def encode_audio_input(data: str) -> str:
    return AudioInput(data=data).model_dump_json()
