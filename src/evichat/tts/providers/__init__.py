from .hume import HumeSpeechSynthesizer

__all__ = ["HumeSpeechSynthesizer"]
