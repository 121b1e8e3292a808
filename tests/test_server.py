"""Tests for the SAKHII HTTP routes.

Uses httpx.AsyncClient with ASGITransport for async testing.  The app,
gemini, voice_session and session_bus fixtures are defined in conftest.py.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from sse_starlette.sse import EventSourceResponse

from sakhii import __version__
from sakhii.errors import RemoteCallError
from sakhii.server.routes import voice_events
from sakhii.voice.prompts import (
    CAPABILITY_UNAVAILABLE_MESSAGE,
    FALLBACK_REPLY,
    fallback_for,
    preamble_for,
)
from sakhii.voice.types import AssistantResponse, SessionPhase


# ---------------------------------------------------------------------------
# POST /ask
# ---------------------------------------------------------------------------


class TestAskProxy:

    async def test_forwards_query_verbatim(self, async_client: httpx.AsyncClient, gemini):
        gemini.generate.return_value = AssistantResponse(text="Drink warm water.")

        response = await async_client.post("/ask", json={"userQuery": "Cramps?"})

        assert response.status_code == 200
        assert response.json() == {"reply": "Drink warm water."}
        gemini.generate.assert_awaited_once_with(
            "Cramps?", model="gemini-1.5-pro-latest"
        )
        gemini.complete.assert_not_awaited()

    async def test_remote_failure_returns_500(self, async_client: httpx.AsyncClient, gemini):
        gemini.generate.side_effect = RemoteCallError("boom")

        response = await async_client.post("/ask", json={"userQuery": "Cramps?"})

        assert response.status_code == 500
        assert response.json() == {"error": "Something went wrong."}

    @pytest.mark.parametrize(
        "payload",
        [{}, {"userQuery": 7}, ["userQuery"]],
    )
    async def test_bad_body_returns_500(self, async_client: httpx.AsyncClient, gemini, payload):
        response = await async_client.post("/ask", json=payload)
        assert response.status_code == 500
        assert response.json() == {"error": "Something went wrong."}
        gemini.generate.assert_not_awaited()

    async def test_invalid_json_returns_500(self, async_client: httpx.AsyncClient):
        response = await async_client.post(
            "/ask", content=b"not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 500


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------


class TestHealth:

    async def test_health_fields(self, async_client: httpx.AsyncClient):
        response = await async_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == __version__
        assert body["gemini_configured"] is True
        assert body["recognition_available"] is True
        assert body["synthesis_available"] is True
        assert body["locale"] == "en-IN"
        assert body["session_phase"] == "idle"
        assert body["dropped_events"] == 0

    async def test_health_reports_missing_recognizer(
        self, async_client: httpx.AsyncClient, recognizer
    ):
        recognizer.available = False
        body = (await async_client.get("/health")).json()
        assert body["recognition_available"] is False


# ---------------------------------------------------------------------------
# /voice
# ---------------------------------------------------------------------------


class TestVoiceRoutes:

    async def test_state_starts_idle(self, async_client: httpx.AsyncClient):
        body = (await async_client.get("/voice/state")).json()
        assert body["session_id"] == "test-session"
        assert body["phase"] == "idle"
        assert body["reply"] is None

    async def test_ask_returns_final_state(self, async_client: httpx.AsyncClient, gemini):
        response = await async_client.post(
            "/voice/ask", json={"text": "What foods help with period cramps?"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["phase"] == "replied"
        assert body["transcript"] == "What foods help with period cramps?"
        assert body["reply"] == "Try iron-rich foods..."
        gemini.complete.assert_awaited_once()

    async def test_ask_failure_returns_fallback(self, async_client: httpx.AsyncClient, gemini):
        gemini.complete.side_effect = httpx.ConnectError("refused")
        body = (await async_client.post("/voice/ask", json={"text": "hi"})).json()
        assert body["phase"] == "failed"
        assert body["reply"] == FALLBACK_REPLY
        assert body["error"] == "remote_call_error"

    async def test_ask_requires_text(self, async_client: httpx.AsyncClient):
        response = await async_client.post("/voice/ask", json={"text": "  "})
        assert response.status_code == 400

    async def test_ask_invalid_json(self, async_client: httpx.AsyncClient):
        response = await async_client.post(
            "/voice/ask", content=b"{", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400

    async def test_start_runs_cycle(self, async_client: httpx.AsyncClient, voice_session):
        response = await async_client.post("/voice/start")
        assert response.status_code == 200
        assert response.json()["status"] == "listening"

        state = await voice_session.wait()
        assert state.reply == "Try iron-rich foods..."

    async def test_start_without_capability_returns_503(
        self, async_client: httpx.AsyncClient, recognizer, gemini, notifications
    ):
        recognizer.available = False
        response = await async_client.post("/voice/start")
        assert response.status_code == 503
        assert response.json()["reason"] == CAPABILITY_UNAVAILABLE_MESSAGE
        assert notifications == [CAPABILITY_UNAVAILABLE_MESSAGE]
        gemini.complete.assert_not_awaited()

    async def test_start_while_listening_returns_409(
        self, async_client: httpx.AsyncClient, recognizer, voice_session
    ):
        recognizer.gate = asyncio.Event()
        first = await async_client.post("/voice/start")
        second = await async_client.post("/voice/start")

        assert first.status_code == 200
        assert second.status_code == 409

        recognizer.gate.set()
        await voice_session.wait()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


class TestCreateApp:

    def test_create_app_without_speech(self):
        from sakhii.server.app import create_app

        app = create_app(enable_speech=False)

        assert app.state.voice_session.recognition_available is False
        assert app.state.voice_session.synthesis_available is False
        paths = set(app.openapi()["paths"])
        assert {
            "/ask",
            "/ask-sakhii",
            "/health",
            "/voice/state",
            "/voice/start",
            "/voice/ask",
            "/voice/events",
        } <= paths

    async def test_lifespan_starts_and_stops_gemini(self):
        from sakhii.server.app import create_app

        app = create_app(enable_speech=False)
        gemini = app.state.gemini
        with patch.object(gemini, "start", new_callable=AsyncMock) as start, patch.object(
            gemini, "stop", new_callable=AsyncMock
        ) as stop:
            async with app.router.lifespan_context(app):
                start.assert_awaited_once()
            stop.assert_awaited_once()


# ---------------------------------------------------------------------------
# POST /ask-sakhii
# ---------------------------------------------------------------------------


class TestAskSakhii:

    async def test_uses_persona_for_language(self, async_client: httpx.AsyncClient, gemini):
        response = await async_client.post(
            "/ask-sakhii", json={"message": "  पीरियड्स में क्या खाएं?  ", "language": "hi"}
        )

        assert response.status_code == 200
        assert response.json() == {"response": "Try iron-rich foods..."}
        (request,), _ = gemini.complete.await_args
        assert request.system_preamble == preamble_for("hi")
        assert request.query_text == "पीरियड्स में क्या खाएं?"

    async def test_language_defaults_to_english(self, async_client: httpx.AsyncClient, gemini):
        await async_client.post("/ask-sakhii", json={"message": "Cramps?"})
        (request,), _ = gemini.complete.await_args
        assert request.system_preamble == preamble_for("en")

    async def test_failure_answers_with_localized_fallback(
        self, async_client: httpx.AsyncClient, gemini
    ):
        gemini.complete.side_effect = RemoteCallError("boom")

        response = await async_client.post(
            "/ask-sakhii", json={"message": "नमस्ते", "language": "hi"}
        )

        assert response.status_code == 200
        assert response.json() == {"response": fallback_for("hi")}

    @pytest.mark.parametrize(
        "payload", [{}, {"message": ""}, {"message": 3}, ["message"]]
    )
    async def test_message_required(self, async_client: httpx.AsyncClient, gemini, payload):
        response = await async_client.post("/ask-sakhii", json=payload)
        assert response.status_code == 400
        assert response.json() == {"message": "Message is required"}
        gemini.complete.assert_not_awaited()

    async def test_invalid_json(self, async_client: httpx.AsyncClient):
        response = await async_client.post(
            "/ask-sakhii", content=b"{", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400


# ---------------------------------------------------------------------------
# Overlapping /voice/ask requests
# ---------------------------------------------------------------------------


class TestVoiceAskSupersession:

    async def test_replaced_request_answers_409(
        self, async_client: httpx.AsyncClient, gemini, voice_session
    ):
        async def _complete(request):
            if request.query_text == "slow question":
                await asyncio.Event().wait()
            return AssistantResponse(text=f"re: {request.query_text}")

        gemini.complete.side_effect = _complete

        first = asyncio.create_task(
            async_client.post("/voice/ask", json={"text": "slow question"})
        )
        for _ in range(50):
            await asyncio.sleep(0)
            if voice_session.state.phase == SessionPhase.AWAITING_REPLY:
                break
        assert voice_session.state.phase == SessionPhase.AWAITING_REPLY

        second = await async_client.post("/voice/ask", json={"text": "fast question"})
        replaced = await first

        assert replaced.status_code == 409
        assert replaced.json()["reason"] == "superseded"
        assert second.status_code == 200
        assert second.json()["transcript"] == "fast question"
        assert second.json()["reply"] == "re: fast question"


# ---------------------------------------------------------------------------
# GET /voice/events
# ---------------------------------------------------------------------------


def _sse_request(session_bus) -> MagicMock:
    request = MagicMock()
    request.app.state.session_bus = session_bus
    request.is_disconnected = AsyncMock(return_value=False)
    return request


class TestVoiceEventStream:
    """The handler is driven directly; its generator is the SSE body."""

    async def test_route_returns_event_source_response(self, session_bus):
        response = await voice_events(_sse_request(session_bus))
        assert isinstance(response, EventSourceResponse)

    async def test_stream_carries_state_changes_of_a_cycle(
        self, session_bus, voice_session
    ):
        response = await voice_events(_sse_request(session_bus), session_id="test-session")
        stream = response.body_iterator

        first = asyncio.ensure_future(stream.__anext__())
        for _ in range(10):
            await asyncio.sleep(0)
            if session_bus.subscriber_count:
                break
        assert session_bus.subscriber_count == 1

        await voice_session.ask("Is spotting normal?")
        await voice_session.wait()

        messages = [await first]
        messages += [await stream.__anext__() for _ in range(2)]

        assert {m["event"] for m in messages} == {"state_changed"}
        phases = [json.loads(m["data"])["state"]["phase"] for m in messages]
        assert phases == ["transcribed", "awaiting_reply", "replied"]
        assert json.loads(messages[-1]["data"])["state"]["reply"] == "Try iron-rich foods..."

        await stream.aclose()
        assert session_bus.subscriber_count == 0

    async def test_stream_for_other_session_stays_quiet(self, session_bus, voice_session):
        response = await voice_events(_sse_request(session_bus), session_id="someone-else")
        stream = response.body_iterator
        pending = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0)

        await voice_session.ask("Is spotting normal?")
        await voice_session.wait()
        await asyncio.sleep(0)

        assert not pending.done()
        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending
        assert session_bus.subscriber_count == 0
