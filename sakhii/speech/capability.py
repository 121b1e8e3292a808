"""Speech capability interfaces.

The voice session never touches a microphone or speaker directly.  It is
handed a :class:`SpeechRecognizer` and a :class:`SpeechSynthesizer`, and
feature-detects recognition through :func:`detect_recognition`, which yields
either ``Available(handle)`` or ``Unavailable(reason)``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pydantic import BaseModel


class RecognitionAlternative(BaseModel):
    """One hypothesis for a recognized utterance."""

    transcript: str
    confidence: float | None = None


class SpeechRecognizer(ABC):
    """Single-shot speech recognizer.

    ``recognize()`` returns a list of results, each a list of alternatives,
    best first.  Failures (no speech, permission denied, transport errors)
    are raised as :class:`~sakhii.errors.RecognitionError`.
    """

    @abstractmethod
    async def start(self) -> None:
        """Acquire devices / clients."""

    @abstractmethod
    async def stop(self) -> None:
        """Release devices / clients."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether recognition can run right now."""

    @abstractmethod
    async def recognize(
        self,
        locale: str,
        *,
        interim_results: bool = False,
        max_alternatives: int = 1,
    ) -> list[list[RecognitionAlternative]]:
        """Listen for one utterance and return its final results."""

    def cancel(self) -> None:
        """Abort an in-progress ``recognize()`` as soon as possible."""


class SpeechSynthesizer(ABC):
    """Fire-and-forget speech output.

    ``speak()`` must never raise; failures are logged by the provider.
    """

    @abstractmethod
    async def start(self) -> None:
        """Acquire devices / clients."""

    @abstractmethod
    async def stop(self) -> None:
        """Release devices / clients."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether speech can be produced right now."""

    @abstractmethod
    async def speak(self, text: str, locale: str) -> None:
        """Speak *text* aloud in *locale*."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Human-readable provider name for health/status display."""


@dataclass(frozen=True)
class Available:
    handle: SpeechRecognizer


@dataclass(frozen=True)
class Unavailable:
    reason: str


def detect_recognition(recognizer: SpeechRecognizer | None) -> Available | Unavailable:
    """Feature-detect speech recognition."""
    if recognizer is None:
        return Unavailable("no recognizer configured")
    if not recognizer.is_available:
        return Unavailable("recognizer not available")
    return Available(recognizer)
