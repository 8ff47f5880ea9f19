from pydantic import BaseModel, ConfigDict, Field


class Utterance(BaseModel):
    """Text to speak plus the voice it should be spoken in."""

    model_config = ConfigDict(frozen=True)

    text: str
    description: str = Field(description="Natural-language voice persona")


class AudioFormat(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = "mp3"


class SynthesisRequest(BaseModel):
    """Request body for the text-to-speech endpoints."""

    utterances: list[Utterance]
    format: AudioFormat = Field(default_factory=AudioFormat)
    num_generations: int = 1
    instant_mode: bool | None = Field(
        default=None,
        description="Low-latency mode, only sent to the streaming endpoint"
    )
