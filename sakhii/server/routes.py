"""HTTP routes for the SAKHII server.

Endpoints
---------
POST /ask           Pass-through: ``{"userQuery": ...}`` is sent verbatim
                    (no persona preamble) to the hosted model; returns
                    ``{"reply": ...}`` or HTTP 500 ``{"error": ...}``.

POST /ask-sakhii    ``{"message": ..., "language": "hi"}`` wrapped in the
                    persona for that language; returns ``{"response": ...}``,
                    the localized fallback text when the model call fails.

GET  /health        Server status, version, credential and speech
                    availability, and the voice session phase.

GET  /voice/state   Current voice session state.

POST /voice/start   Open the microphone and run one voice cycle.

POST /voice/ask     Typed query through the voice session; waits for the
                    reply and returns the final state.

GET  /voice/events  Streams session events as Server-Sent Events (SSE).
"""

import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from sakhii import __version__
from sakhii.config import PROXY_MODEL
from sakhii.errors import RemoteCallError
from sakhii.events.event_bus import SessionEventBus
from sakhii.llm.gemini_client import GeminiClient
from sakhii.voice.prompts import (
    CAPABILITY_UNAVAILABLE_MESSAGE,
    DEFAULT_LANGUAGE,
    build_request,
    fallback_for,
)
from sakhii.voice.session import VoiceSession

logger = logging.getLogger(__name__)

router = APIRouter()

_PROXY_ERROR = "Something went wrong."


def _get_gemini(request: Request) -> GeminiClient:
    return request.app.state.gemini


def _get_voice_session(request: Request) -> VoiceSession:
    return request.app.state.voice_session


def _get_session_bus(request: Request) -> SessionEventBus:
    return request.app.state.session_bus


def _error(status_code: int, reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"status": "error", "reason": reason}
    )


# ---------------------------------------------------------------------------
# POST /ask, POST /ask-sakhii
# ---------------------------------------------------------------------------


@router.post("/ask")
async def ask(request: Request):
    """Forward ``userQuery`` verbatim to the hosted model."""
    gemini = _get_gemini(request)
    try:
        body = await request.json()
        user_query = body["userQuery"]
        if not isinstance(user_query, str):
            raise TypeError("userQuery must be a string")
        response = await gemini.generate(user_query, model=PROXY_MODEL)
    except Exception:
        logger.warning("POST /ask failed", exc_info=True)
        return JSONResponse(status_code=500, content={"error": _PROXY_ERROR})
    return {"reply": response.text}


@router.post("/ask-sakhii")
async def ask_sakhii(request: Request):
    """Answer ``message`` with the persona for ``language`` (default English).

    A failed model call still answers 200, with the fallback text in the
    requested language.
    """
    gemini = _get_gemini(request)
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"message": "Message is required"})

    message = body.get("message") if isinstance(body, dict) else None
    language = body.get("language") if isinstance(body, dict) else None
    if not isinstance(message, str) or not message.strip():
        return JSONResponse(status_code=400, content={"message": "Message is required"})
    if not isinstance(language, str) or not language.strip():
        language = DEFAULT_LANGUAGE

    try:
        response = await gemini.complete(build_request(message.strip(), language))
    except RemoteCallError:
        logger.warning("POST /ask-sakhii: model call failed (language=%s)", language)
        return {"response": fallback_for(language)}
    return {"response": response.text}


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------


@router.get("/health")
async def health(request: Request) -> dict:
    gemini = _get_gemini(request)
    session = _get_voice_session(request)
    session_bus = _get_session_bus(request)
    return {
        "status": "ok",
        "version": __version__,
        "gemini_configured": gemini.is_configured,
        "recognition_available": session.recognition_available,
        "synthesis_available": session.synthesis_available,
        "locale": session.locale,
        "session_phase": session.state.phase.value,
        "subscribers": session_bus.subscriber_count,
        "dropped_events": session_bus.dropped_count(session.session_id),
    }


# ---------------------------------------------------------------------------
# /voice
# ---------------------------------------------------------------------------


@router.get("/voice/state")
async def voice_state(request: Request) -> dict:
    session = _get_voice_session(request)
    return {"session_id": session.session_id, **session.state.model_dump(mode="json")}


@router.post("/voice/start")
async def voice_start(request: Request):
    """Start one recognition cycle; the reply arrives on /voice/events."""
    session = _get_voice_session(request)
    if not session.recognition_available:
        await session.start()  # records the error and publishes the notification
        return _error(503, CAPABILITY_UNAVAILABLE_MESSAGE)
    if not await session.start():
        return _error(409, "already listening")
    return {"status": "listening", "cycle_id": session.cycle_id}


@router.post("/voice/ask")
async def voice_ask(request: Request):
    """Run a typed query through the voice session and return the outcome.

    Accepts JSON: ``{"text": "..."}``.  Answers 409 if the microphone is
    open, or if a newer request replaced this one before it finished.
    """
    session = _get_voice_session(request)
    try:
        body = await request.json()
        text = body.get("text", "")
    except Exception:
        return _error(400, "invalid json")

    if not isinstance(text, str) or not text.strip():
        return _error(400, "text is required")

    if not await session.ask(text):
        return _error(409, "already listening")
    cycle_id = session.cycle_id
    state = await session.wait(cycle_id)
    if state is None:
        logger.info("POST /voice/ask: cycle %d superseded", cycle_id)
        return _error(409, "superseded")
    return {"session_id": session.session_id, **state.model_dump(mode="json")}


@router.get("/voice/events")
async def voice_events(request: Request, session_id: str | None = None) -> EventSourceResponse:
    """Stream session events as Server-Sent Events.

    ``?session_id=`` limits the stream to one session.  Each SSE message has:
    * ``event`` — ``state_changed`` or ``notification``
    * ``data``  — the full SessionEvent serialised as JSON
    """
    session_bus = _get_session_bus(request)

    async def _generate():
        queue = session_bus.subscribe(session_id)
        try:
            while True:
                if await request.is_disconnected():
                    logger.debug("SSE client disconnected")
                    break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=15.0)
                except asyncio.TimeoutError:
                    yield {"comment": "ping"}
                    continue
                yield {"event": event.type.value, "data": event.model_dump_json()}
        except asyncio.CancelledError:
            logger.debug("SSE stream cancelled")
            raise
        finally:
            session_bus.unsubscribe(queue)
            logger.debug("SSE subscriber cleaned up")

    return EventSourceResponse(_generate())
