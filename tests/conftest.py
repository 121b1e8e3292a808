"""Shared fixtures for SAKHII tests."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from sakhii.events.event_bus import SessionEventBus
from sakhii.llm.gemini_client import GeminiClient
from sakhii.speech.capability import (
    RecognitionAlternative,
    SpeechRecognizer,
    SpeechSynthesizer,
)
from sakhii.voice.session import VoiceSession
from sakhii.voice.types import AssistantResponse


class FakeRecognizer(SpeechRecognizer):
    """In-memory recognizer.

    ``outcome`` is either a results list, an exception instance to raise,
    or None for "ended with no result".  When ``gate`` is set, recognize()
    blocks on it so tests can observe the listening state.
    """

    def __init__(self, outcome=None, *, available: bool = True) -> None:
        self.outcome = outcome
        self.available = available
        self.calls: list[dict] = []
        self.gate: asyncio.Event | None = None
        self.cancelled = False

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    @property
    def is_available(self) -> bool:
        return self.available

    def cancel(self) -> None:
        self.cancelled = True

    async def recognize(self, locale, *, interim_results=False, max_alternatives=1):
        self.calls.append(
            {
                "locale": locale,
                "interim_results": interim_results,
                "max_alternatives": max_alternatives,
            }
        )
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(self.outcome, Exception):
            raise self.outcome
        if self.outcome is None:
            return []
        return self.outcome


class FakeSynthesizer(SpeechSynthesizer):
    """Records every utterance instead of playing it."""

    def __init__(self, *, available: bool = True) -> None:
        self.available = available
        self.spoken: list[tuple[str, str]] = []

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    @property
    def is_available(self) -> bool:
        return self.available

    @property
    def provider_name(self) -> str:
        return "fake"

    async def speak(self, text: str, locale: str) -> None:
        self.spoken.append((text, locale))


def results_for(*transcripts: str) -> list[list[RecognitionAlternative]]:
    """One result whose alternatives are *transcripts*, best first."""
    return [[RecognitionAlternative(transcript=t) for t in transcripts]]


@pytest.fixture
def session_bus() -> SessionEventBus:
    """Return a fresh SessionEventBus with a small queue for testing."""
    return SessionEventBus(maxsize=64)


@pytest.fixture
def gemini() -> MagicMock:
    """Return a GeminiClient double whose calls succeed with a canned reply."""
    client = MagicMock(spec=GeminiClient)
    client.is_configured = True
    client.complete = AsyncMock(return_value=AssistantResponse(text="Try iron-rich foods..."))
    client.generate = AsyncMock(return_value=AssistantResponse(text="Hello there"))
    return client


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer(results_for("What foods help with period cramps?"))


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def notifications() -> list[str]:
    return []


@pytest.fixture
def voice_session(
    gemini, recognizer, synthesizer, session_bus, notifications
) -> VoiceSession:
    return VoiceSession(
        gemini,
        recognizer=recognizer,
        synthesizer=synthesizer,
        event_bus=session_bus,
        notifier=notifications.append,
        locale="en-IN",
        speak_failures=True,
        session_id="test-session",
    )


@pytest.fixture
def app(gemini, voice_session, session_bus):
    """Return a FastAPI test app with the routes and mocked state."""
    from fastapi import FastAPI

    from sakhii.server.routes import router

    test_app = FastAPI()
    test_app.state.gemini = gemini
    test_app.state.voice_session = voice_session
    test_app.state.session_bus = session_bus
    test_app.include_router(router)
    return test_app


@pytest.fixture
async def async_client(app):
    """Return an httpx AsyncClient configured with the test FastAPI app."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client
