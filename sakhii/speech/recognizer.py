"""Speech recognizer backed by the local microphone and Whisper."""

import logging

from sakhii.errors import RecognitionError
from sakhii.speech.capability import RecognitionAlternative, SpeechRecognizer
from sakhii.speech.microphone import MicrophoneCapture
from sakhii.speech.whisper_client import WhisperClient

logger = logging.getLogger(__name__)


class MicrophoneRecognizer(SpeechRecognizer):
    """Captures one utterance and transcribes it.

    Whisper returns a single final hypothesis, so results are always one
    result with one alternative.  Interim results are not supported.
    """

    def __init__(self) -> None:
        self._microphone = MicrophoneCapture()
        self._whisper = WhisperClient()

    async def start(self) -> None:
        await self._microphone.start()
        await self._whisper.start()

    async def stop(self) -> None:
        await self._whisper.stop()
        await self._microphone.stop()

    @property
    def is_available(self) -> bool:
        return self._microphone.is_available and self._whisper.is_available

    @property
    def is_listening(self) -> bool:
        return self._microphone.is_listening

    def cancel(self) -> None:
        self._microphone.cancel()

    async def recognize(
        self,
        locale: str,
        *,
        interim_results: bool = False,
        max_alternatives: int = 1,
    ) -> list[list[RecognitionAlternative]]:
        if interim_results:
            raise ValueError("interim results are not supported")

        pcm = await self._microphone.capture_utterance()
        if pcm is None:
            raise RecognitionError("no speech detected")

        language = locale.split("-", 1)[0].lower()
        transcript = await self._whisper.transcribe(pcm, language)
        logger.info("Recognized (%s): %s", locale, transcript)
        return [[RecognitionAlternative(transcript=transcript)][:max_alternatives]]
