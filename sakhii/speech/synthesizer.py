"""Speech synthesizer: ElevenLabs audio played on the local speaker."""

import logging

from sakhii.speech.audio_player import AudioPlayer
from sakhii.speech.capability import SpeechSynthesizer
from sakhii.speech.elevenlabs_client import ElevenLabsClient

logger = logging.getLogger(__name__)


class ElevenLabsSynthesizer(SpeechSynthesizer):

    def __init__(self) -> None:
        self._elevenlabs = ElevenLabsClient()
        self._player = AudioPlayer()

    async def start(self) -> None:
        await self._elevenlabs.start()
        await self._player.start()

    async def stop(self) -> None:
        await self._player.stop()
        await self._elevenlabs.stop()

    @property
    def is_available(self) -> bool:
        return self._elevenlabs.is_available and self._player.is_available

    @property
    def provider_name(self) -> str:
        return "elevenlabs"

    async def speak(self, text: str, locale: str) -> None:
        language_code = locale.split("-", 1)[0].lower()
        try:
            pcm = await self._elevenlabs.synthesize(text, language_code)
            if not pcm:
                logger.debug("Nothing to play — synthesis unavailable")
                return
            await self._player.play(pcm)
            logger.info("Spoke %d chars (%s)", len(text), locale)
        except Exception:
            logger.warning("Speech output failed", exc_info=True)
