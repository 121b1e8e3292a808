"""ElevenLabs text-to-speech HTTP client.

Returns raw PCM 16 kHz int16 mono audio.  Falls back silently (returns
None) when the key is missing or the API is unreachable.
"""

import logging
import time

import httpx

from sakhii.config import (
    ELEVENLABS_API_KEY,
    ELEVENLABS_BASE_URL,
    TTS_MODEL,
    TTS_TIMEOUT,
    TTS_VOICE_ID,
)

logger = logging.getLogger(__name__)

_HEALTH_CHECK_INTERVAL = 60.0


class ElevenLabsClient:
    """ElevenLabs TTS client with health checking and graceful degradation."""

    def __init__(self) -> None:
        self._available: bool = False
        self._last_health_check: float = 0.0
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        """Initialize the HTTP client and run the initial health check."""
        if not ELEVENLABS_API_KEY:
            self._available = False
            logger.info("No ElevenLabs API key — speech output disabled")
            return

        self._client = httpx.AsyncClient(
            base_url=ELEVENLABS_BASE_URL,
            timeout=TTS_TIMEOUT,
            headers={"xi-api-key": ELEVENLABS_API_KEY},
        )
        await self._check_health()

    async def stop(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def is_available(self) -> bool:
        return self._available

    async def synthesize(self, text: str, language_code: str | None = None) -> bytes | None:
        """Synthesize *text* to PCM bytes.  Returns None on any failure."""
        if not self._available and self._client is not None:
            if time.monotonic() - self._last_health_check >= _HEALTH_CHECK_INTERVAL:
                await self._check_health()

        if not self._available or not self._client:
            return None

        body = {"text": text, "model_id": TTS_MODEL}
        if language_code:
            body["language_code"] = language_code
        try:
            response = await self._client.post(
                f"/v1/text-to-speech/{TTS_VOICE_ID}",
                json=body,
                params={"output_format": "pcm_16000"},
            )
            response.raise_for_status()
            return response.content
        except httpx.HTTPError:
            logger.warning("ElevenLabs synthesis failed", exc_info=True)
            return None

    async def _check_health(self) -> None:
        """Validate the API key via GET /v1/user."""
        self._last_health_check = time.monotonic()
        try:
            resp = await self._client.get("/v1/user")
        except (httpx.ConnectError, httpx.TimeoutException, OSError) as exc:
            self._available = False
            logger.warning("ElevenLabs not reachable at %s: %s", ELEVENLABS_BASE_URL, exc)
            return

        self._available = resp.status_code == 200
        if self._available:
            logger.info("ElevenLabs available (voice: %s, model: %s)", TTS_VOICE_ID, TTS_MODEL)
        else:
            logger.warning("ElevenLabs returned status %d — speech output unavailable", resp.status_code)
