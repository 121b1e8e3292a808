"""FastAPI application factory for SAKHII.

Creates the FastAPI app with lifespan management for the Gemini client,
the speech capabilities and the shared :class:`VoiceSession`.  The
``create_app()`` function is the single entry point used by the CLI and
``uvicorn`` alike.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from sakhii import __version__
from sakhii.events.event_bus import SessionEventBus
from sakhii.llm.gemini_client import GeminiClient
from sakhii.server.routes import router
from sakhii.speech.factory import create_recognizer, create_synthesizer
from sakhii.voice.session import VoiceSession

logger = logging.getLogger(__name__)


def create_app(*, enable_speech: bool = True) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    The returned app has:
    * ``app.state.gemini`` — the shared :class:`GeminiClient`
    * ``app.state.session_bus`` — the :class:`SessionEventBus` of session events
    * ``app.state.voice_session`` — the server-side :class:`VoiceSession`
    * The ``/ask``, ``/ask-sakhii``, ``/health`` and ``/voice/*`` routes

    With ``enable_speech=False`` no recognizer or synthesizer is created;
    ``/voice/start`` then reports recognition as unavailable.
    """
    gemini = GeminiClient()
    session_bus = SessionEventBus()
    recognizer = create_recognizer() if enable_speech else None
    synthesizer = create_synthesizer() if enable_speech else None
    voice_session = VoiceSession(
        gemini,
        recognizer=recognizer,
        synthesizer=synthesizer,
        event_bus=session_bus,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("SAKHII server starting up")
        await gemini.start()
        if recognizer is not None:
            await recognizer.start()
            logger.info("Recognizer started (available=%s)", recognizer.is_available)
        if synthesizer is not None:
            await synthesizer.start()
            logger.info("Synthesizer started (available=%s)", synthesizer.is_available)
        try:
            yield
        finally:
            logger.info("SAKHII server shutting down")
            await voice_session.close()
            if synthesizer is not None:
                await synthesizer.stop()
            if recognizer is not None:
                await recognizer.stop()
            await gemini.stop()

    app = FastAPI(title="SAKHII", version=__version__, lifespan=lifespan)

    app.state.gemini = gemini
    app.state.session_bus = session_bus
    app.state.voice_session = voice_session

    app.include_router(router)

    logger.info("FastAPI app created")
    return app
