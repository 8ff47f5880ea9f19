import base64
import binascii
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ...ndjson import iter_json_lines
from ...prompts import get_voice_persona
from ..base import SpeechSynthesizer
from ..models import SynthesisRequest, Utterance

logger = logging.getLogger(__name__)

HUME_API_URL = "https://api.hume.ai"


def _decode_audio(value: Any) -> bytes | None:
    if not isinstance(value, str):
        return None
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        logger.debug("Discarding audio with invalid base64 payload")
        return None


class HumeSpeechSynthesizer(SpeechSynthesizer):
    """Hume text-to-speech implementation over httpx.

    Hidden design decisions:
    - X-Hume-Api-Key header authentication
    - Single generation per request, mp3 output
    - JSON streaming endpoint with instant mode
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = HUME_API_URL,
        description: str | None = None,
        timeout: float = 60.0,
        **client_kwargs: Any
    ):
        """Initialize Hume TTS client.

        Args:
            api_key: Hume API key
            base_url: API base URL (default: https://api.hume.ai)
            description: Voice persona; defaults to the voice_persona prompt
            timeout: Request timeout in seconds
            **client_kwargs: Additional kwargs for httpx.AsyncClient
        """
        self._description = description or get_voice_persona()
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"X-Hume-Api-Key": api_key, "Content-Type": "application/json"},
            timeout=timeout,
            **client_kwargs
        )

    @property
    def description(self) -> str:
        return self._description

    def _body(self, text: str, instant_mode: bool | None = None) -> dict[str, Any]:
        request = SynthesisRequest(
            utterances=[Utterance(text=text, description=self._description)],
            instant_mode=instant_mode,
        )
        return request.model_dump(exclude_none=True)

    async def synthesize(self, text: str) -> bytes | None:
        try:
            response = await self._client.post("/v0/tts", json=self._body(text))
        except httpx.HTTPError as e:
            logger.warning("Error with TTS: %s", e)
            return None

        if response.status_code != 200:
            logger.warning("TTS error: %s - %.200s", response.status_code, response.text)
            return None

        try:
            data = response.json()
            audio = data["generations"][0]["audio"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.warning("TTS response has no generations[0].audio")
            return None

        return _decode_audio(audio)

    def synthesize_stream(self, text: str) -> AsyncIterator[bytes]:
        return self._stream_generator(text)

    async def _stream_generator(self, text: str) -> AsyncIterator[bytes]:
        """Internal generator that yields decoded audio chunks."""
        try:
            async with self._client.stream(
                "POST", "/v0/tts/stream/json", json=self._body(text, instant_mode=True)
            ) as response:
                if response.status_code != 200:
                    logger.warning("TTS stream error: %s", response.status_code)
                    return
                async for data in iter_json_lines(response):
                    audio = _decode_audio(data.get("audio"))
                    if audio:
                        yield audio
        except httpx.HTTPError as e:
            logger.warning("Error streaming TTS: %s", e)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
