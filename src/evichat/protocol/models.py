"""Typed EVI frames.

Inbound frames form a closed set of event models keyed by their ``type``
discriminator, with UnknownEvent as the catch-all. Outbound frames are the
three messages the client ever writes to the socket.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Audio format declared in session_settings; capture must produce exactly this.
AUDIO_ENCODING = "linear16"
AUDIO_SAMPLE_RATE = 48000
AUDIO_CHANNELS = 1


class EmotionScore(BaseModel):
    """A named affect label with its [0, 1] confidence."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(description="Emotion label, e.g. 'joy'")
    score: float = Field(description="Confidence in [0, 1]")


class ChatMessage(BaseModel):
    """Transcript text attached to assistant/user message events."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="'user' or 'assistant'")
    content: str = Field(default="", description="Transcribed or generated text")


class ProsodyInference(BaseModel):
    model_config = ConfigDict(frozen=True)

    scores: dict[str, float] = Field(default_factory=dict)


class Inference(BaseModel):
    model_config = ConfigDict(frozen=True)

    prosody: ProsodyInference | None = None


class InboundEvent(BaseModel):
    """Base class for decoded inbound frames.

    ``raw`` keeps the verbatim frame text for diagnostics.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str
    raw: str = Field(default="", exclude=True, repr=False)


class ErrorEvent(InboundEvent):
    type: Literal["error"] = "error"
    code: str = ""
    slug: str = ""
    message: str = ""


class ChatMetadataEvent(InboundEvent):
    type: Literal["chat_metadata"] = "chat_metadata"
    chat_id: str = ""
    chat_group_id: str = ""


class AudioOutputEvent(InboundEvent):
    type: Literal["audio_output"] = "audio_output"
    data: str = Field(description="Base64 encoded audio segment")
    id: str = ""


class UserInterruptionEvent(InboundEvent):
    type: Literal["user_interruption"] = "user_interruption"
    time: int | None = None


class _TranscriptEvent(InboundEvent):
    message: ChatMessage
    models: Inference = Field(default_factory=Inference)

    @property
    def prosody_scores(self) -> dict[str, float]:
        """Label->score mapping, empty when the frame carried no prosody."""
        if self.models.prosody is None:
            return {}
        return self.models.prosody.scores


class AssistantMessageEvent(_TranscriptEvent):
    type: Literal["assistant_message"] = "assistant_message"
    id: str | None = None


class UserMessageEvent(_TranscriptEvent):
    type: Literal["user_message"] = "user_message"
    interim: bool = False


class UnknownEvent(InboundEvent):
    """Any frame whose type is unrecognized or whose payload failed to decode."""

    type: str = ""


class AudioSettings(BaseModel):
    encoding: str = AUDIO_ENCODING
    sample_rate: int = AUDIO_SAMPLE_RATE
    channels: int = AUDIO_CHANNELS


class SessionSettings(BaseModel):
    type: Literal["session_settings"] = "session_settings"
    audio: AudioSettings = Field(default_factory=AudioSettings)


class UserInput(BaseModel):
    type: Literal["user_input"] = "user_input"
    text: str


class AudioInput(BaseModel):
    type: Literal["audio_input"] = "audio_input"
    data: str = Field(description="Base64 encoded linear16 PCM chunk")
