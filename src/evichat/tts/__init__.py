from .base import SpeechSynthesizer
from .factory import create_speech_synthesizer
from .models import AudioFormat, SynthesisRequest, Utterance
from .providers import HumeSpeechSynthesizer

__all__ = [
    "SpeechSynthesizer",
    "create_speech_synthesizer",
    "AudioFormat",
    "SynthesisRequest",
    "Utterance",
    "HumeSpeechSynthesizer",
]
