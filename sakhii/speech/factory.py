"""Builds the device-backed speech capabilities."""

import logging

from sakhii.speech.capability import SpeechRecognizer, SpeechSynthesizer

logger = logging.getLogger(__name__)


def create_recognizer() -> SpeechRecognizer | None:
    """Return a microphone + Whisper recognizer, or None without an audio stack."""
    try:
        from sakhii.speech.recognizer import MicrophoneRecognizer
    except OSError:
        logger.warning("PortAudio not available — speech recognition disabled")
        return None
    logger.info("Creating microphone speech recognizer")
    return MicrophoneRecognizer()


def create_synthesizer() -> SpeechSynthesizer | None:
    """Return an ElevenLabs synthesizer, or None without an audio stack."""
    try:
        from sakhii.speech.synthesizer import ElevenLabsSynthesizer
    except OSError:
        logger.warning("PortAudio not available — speech output disabled")
        return None
    logger.info("Creating ElevenLabs speech synthesizer")
    return ElevenLabsSynthesizer()
