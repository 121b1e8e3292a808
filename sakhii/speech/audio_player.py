"""Local playback of synthesized PCM audio."""

import asyncio
import logging

import numpy as np
import sounddevice as sd

from sakhii.config import AUDIO_SAMPLE_RATE

logger = logging.getLogger(__name__)


class AudioPlayer:
    """Plays PCM int16 mono clips one at a time on the default output device.

    Clips handed over while another is playing wait their turn; nothing
    interrupts a clip once it has started.
    """

    def __init__(self) -> None:
        self._available: bool = False
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        try:
            sd.query_devices(kind="output")
            self._available = True
            logger.info("Audio output device detected — playback enabled")
        except Exception:
            self._available = False
            logger.warning("No audio output device — playback disabled")

    async def stop(self) -> None:
        self._available = False
        sd.stop()

    @property
    def is_available(self) -> bool:
        return self._available

    async def play(self, pcm: bytes, sample_rate: int = AUDIO_SAMPLE_RATE) -> None:
        if not self._available or not pcm:
            return
        samples = np.frombuffer(pcm, dtype=np.int16)
        async with self._lock:
            await asyncio.to_thread(self._play_blocking, samples, sample_rate)

    @staticmethod
    def _play_blocking(samples: np.ndarray, sample_rate: int) -> None:
        sd.play(samples, samplerate=sample_rate)
        sd.wait()
