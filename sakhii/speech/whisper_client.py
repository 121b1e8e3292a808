"""Whisper-compatible transcription client.

Uploads captured PCM (wrapped in a WAV header) to an OpenAI-style
``/v1/audio/transcriptions`` endpoint and returns the transcript text.
"""

import io
import logging
import wave

import httpx

from sakhii.config import (
    AUDIO_SAMPLE_RATE,
    STT_API_KEY,
    STT_BASE_URL,
    STT_MODEL,
    STT_TIMEOUT,
)
from sakhii.errors import RecognitionError

logger = logging.getLogger(__name__)


class WhisperClient:
    """Transcription API client; unavailable when no key is configured."""

    def __init__(self) -> None:
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        if not STT_API_KEY:
            logger.info("No STT API key — speech recognition disabled")
            return
        self._client = httpx.AsyncClient(
            base_url=STT_BASE_URL,
            timeout=STT_TIMEOUT,
            headers={"Authorization": f"Bearer {STT_API_KEY}"},
        )
        logger.info("Whisper transcription at %s (model: %s)", STT_BASE_URL, STT_MODEL)

    async def stop(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def is_available(self) -> bool:
        return self._client is not None

    async def transcribe(self, pcm: bytes, language: str) -> str:
        """Return the transcript of *pcm*, or raise RecognitionError."""
        if self._client is None:
            raise RecognitionError("transcription client not started")

        try:
            response = await self._client.post(
                "/v1/audio/transcriptions",
                data={"model": STT_MODEL, "language": language},
                files={"file": ("speech.wav", self._to_wav(pcm), "audio/wav")},
            )
            response.raise_for_status()
            transcript = response.json().get("text", "").strip()
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("Transcription request failed", exc_info=True)
            raise RecognitionError(f"transcription failed: {type(exc).__name__}") from exc

        if not transcript:
            raise RecognitionError("no speech recognized")
        logger.debug("Transcript: %s", transcript)
        return transcript

    @staticmethod
    def _to_wav(pcm: bytes) -> io.BytesIO:
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(1)
            wf.setsampwidth(2)  # int16
            wf.setframerate(AUDIO_SAMPLE_RATE)
            wf.writeframes(pcm)
        buf.seek(0)
        return buf
