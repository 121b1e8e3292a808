"""Microphone capture with energy-based voice activity detection."""

import asyncio
import logging
import threading

import numpy as np
import sounddevice as sd

from sakhii.config import (
    AUDIO_SAMPLE_RATE,
    STT_LISTEN_TIMEOUT,
    STT_MAX_RECORD_DURATION,
    STT_SILENCE_DURATION,
    STT_SILENCE_THRESHOLD,
)

logger = logging.getLogger(__name__)

_CHUNK_SECONDS = 0.1


class MicrophoneCapture:
    """Records one utterance from the default input device.

    Probes for an input device at start and degrades to unavailable when
    there is none.  Capture runs in a worker thread so the event loop is
    never blocked.
    """

    def __init__(self) -> None:
        self._available: bool = False
        self._listening: bool = False
        self._cancel = threading.Event()

    async def start(self) -> None:
        """Probe for an input device."""
        try:
            sd.query_devices(kind="input")
            self._available = True
            logger.info("Microphone input device detected — capture enabled")
        except Exception:
            self._available = False
            logger.warning("No microphone input device — capture disabled")

    async def stop(self) -> None:
        self.cancel()
        self._available = False

    @property
    def is_available(self) -> bool:
        return self._available

    @property
    def is_listening(self) -> bool:
        return self._listening

    def cancel(self) -> None:
        """Ask the capture thread to stop at the next chunk boundary."""
        self._cancel.set()

    async def capture_utterance(self, sample_rate: int | None = None) -> bytes | None:
        """Record until trailing silence or the maximum duration.

        Returns PCM 16-bit mono bytes, or None when no speech started
        within the listen timeout, capture was cancelled, or the device
        failed.
        """
        if not self._available:
            return None

        self._cancel.clear()
        self._listening = True
        try:
            return await asyncio.to_thread(
                self._record, sample_rate or AUDIO_SAMPLE_RATE
            )
        except Exception:
            logger.warning("Microphone capture failed", exc_info=True)
            return None
        finally:
            self._listening = False

    def _record(self, sample_rate: int) -> bytes | None:
        """Blocking capture loop (worker thread).

        Waits up to STT_LISTEN_TIMEOUT for a chunk louder than the silence
        threshold, then keeps recording until STT_SILENCE_DURATION of quiet
        or STT_MAX_RECORD_DURATION in total.
        """
        chunk = int(sample_rate * _CHUNK_SECONDS)
        max_wait = _chunks(STT_LISTEN_TIMEOUT)
        max_quiet = _chunks(STT_SILENCE_DURATION)
        max_total = _chunks(STT_MAX_RECORD_DURATION)
        frames: list[np.ndarray] = []
        waited = quiet = 0

        with sd.InputStream(
            samplerate=sample_rate, channels=1, dtype="int16", blocksize=chunk
        ) as stream:
            while not self._cancel.is_set():
                data, _overflowed = stream.read(chunk)
                loud = self._rms(data) > STT_SILENCE_THRESHOLD

                if not frames:
                    waited += 1
                    if loud:
                        frames.append(data.copy())
                    elif waited >= max_wait:
                        return None
                    continue

                frames.append(data.copy())
                quiet = 0 if loud else quiet + 1
                if quiet >= max_quiet or len(frames) >= max_total:
                    break

        if self._cancel.is_set() or not frames:
            return None
        return np.concatenate(frames).tobytes()

    @staticmethod
    def _rms(data: np.ndarray) -> float:
        """RMS amplitude of int16 audio, normalized to 0.0-1.0."""
        samples = data.astype(np.float32) / 32768.0
        return float(np.sqrt(np.mean(samples ** 2)))


def _chunks(seconds: float) -> int:
    """Number of capture chunks covering *seconds* (at least one)."""
    return max(1, round(seconds / _CHUNK_SECONDS))
