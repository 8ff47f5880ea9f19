from typing import Any

from .base import SpeechSynthesizer
from .providers import HumeSpeechSynthesizer


def create_speech_synthesizer(provider: str, **config: Any) -> SpeechSynthesizer:
    """Create a speech synthesizer instance.

    Args:
        provider: Provider type ('hume')
        **config: Provider-specific configuration
            For Hume:
                - api_key: str (required)
                - base_url: str (default: 'https://api.hume.ai')
                - description: str | None (default: voice_persona prompt)

    Returns:
        Initialized speech synthesizer

    Raises:
        ValueError: If provider type is not supported
        TypeError: If required configuration is missing
    """
    if provider.lower() == "hume":
        if "api_key" not in config:
            raise TypeError("Hume provider requires 'api_key' in config")
        return HumeSpeechSynthesizer(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'hume'"
    )
