"""Speech recognition and synthesis capabilities.

Concrete device-backed implementations live in :mod:`sakhii.speech.recognizer`
and :mod:`sakhii.speech.synthesizer`; use :mod:`sakhii.speech.factory` to
build them so that importing this package never loads the audio stack.
"""

from sakhii.speech.capability import (
    Available,
    RecognitionAlternative,
    SpeechRecognizer,
    SpeechSynthesizer,
    Unavailable,
    detect_recognition,
)

__all__ = [
    "Available",
    "RecognitionAlternative",
    "SpeechRecognizer",
    "SpeechSynthesizer",
    "Unavailable",
    "detect_recognition",
]
