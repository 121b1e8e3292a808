"""Voice session controller — recognition → completion → synthesis.

One ``VoiceSession`` runs at most one cycle at a time:

    idle → listening → transcribed → awaiting_reply → replied | failed

Recognition failures drop back to idle silently.  Completion failures are
shown (and spoken) as a fixed fallback reply in the session language.
Nothing raised by the recognizer or the completion client escapes the
controller; every failure becomes session state.

Each cycle runs as its own task tagged with a ``cycle_id``.  Starting a new
cycle while an older one is still waiting for its reply cancels the older
task, and any state write tagged with a stale ``cycle_id`` is dropped, so a
late response can never overwrite newer state.  Starting while the
microphone is open is refused.  Speech output is handed off as a separate
task and is never cancelled by a new cycle.
"""

import asyncio
import logging
from typing import Callable
from uuid import uuid4

from sakhii.config import LOCALE, SPEAK_FAILURES
from sakhii.events.event_bus import SessionEventBus
from sakhii.llm.gemini_client import GeminiClient
from sakhii.speech.capability import (
    SpeechRecognizer,
    SpeechSynthesizer,
    Unavailable,
    detect_recognition,
)
from sakhii.voice.prompts import (
    CAPABILITY_UNAVAILABLE_MESSAGE,
    build_request,
    fallback_for,
)
from sakhii.voice.types import (
    ErrorKind,
    SessionEvent,
    SessionEventType,
    SessionPhase,
    VoiceSessionState,
)

logger = logging.getLogger(__name__)


class VoiceSession:
    """State machine coordinating one user's voice round-trips."""

    def __init__(
        self,
        client: GeminiClient,
        *,
        recognizer: SpeechRecognizer | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        event_bus: SessionEventBus | None = None,
        notifier: Callable[[str], None] | None = None,
        locale: str = LOCALE,
        speak_failures: bool = SPEAK_FAILURES,
        session_id: str | None = None,
    ) -> None:
        self._client = client
        self._recognizer = recognizer
        self._synthesizer = synthesizer
        self._event_bus = event_bus
        self._notifier = notifier
        self._locale = locale
        self._speak_failures = speak_failures
        self._session_id = session_id or str(uuid4())

        self._state = VoiceSessionState()
        self._cycle_id: int = 0
        self._cycle_task: asyncio.Task | None = None
        self._cycle_task_id: int = 0
        self._speech_tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> VoiceSessionState:
        """Snapshot of the current state."""
        return self._state

    @property
    def locale(self) -> str:
        return self._locale

    @property
    def recognition_available(self) -> bool:
        return not isinstance(detect_recognition(self._recognizer), Unavailable)

    @property
    def synthesis_available(self) -> bool:
        return self._synthesizer is not None and self._synthesizer.is_available

    @property
    def in_flight(self) -> bool:
        """Whether a cycle task is still running."""
        return self._cycle_task is not None and not self._cycle_task.done()

    @property
    def cycle_id(self) -> int:
        """Id of the most recently claimed cycle."""
        return self._cycle_id

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """Open the microphone and run one full cycle in the background.

        Returns False when recognition is unavailable (a notification is
        published and the session stays idle) or when already listening.
        """
        capability = detect_recognition(self._recognizer)
        if isinstance(capability, Unavailable):
            logger.warning(
                "Session %s: speech recognition unavailable (%s)",
                self._session_id,
                capability.reason,
            )
            # Leave the state of a running typed cycle untouched.
            if not self.in_flight:
                self._replace(
                    self._state.model_copy(
                        update={"error": ErrorKind.CAPABILITY_UNAVAILABLE}
                    )
                )
            self._notify(CAPABILITY_UNAVAILABLE_MESSAGE)
            return False

        cycle_id = await self._begin_cycle(phase=SessionPhase.LISTENING, listening=True)
        if cycle_id is None:
            return False

        self._cycle_task = asyncio.create_task(
            self._listen_and_reply(cycle_id, capability.handle)
        )
        self._cycle_task_id = cycle_id
        self._emit(SessionEventType.STATE_CHANGED)
        return True

    async def ask(self, text: str) -> bool:
        """Run a cycle for typed *text*, skipping recognition.

        Returns False for blank text or when the microphone is open.
        """
        query = text.strip()
        if not query:
            logger.info("Session %s: ignoring empty query", self._session_id)
            return False

        cycle_id = await self._begin_cycle(
            phase=SessionPhase.TRANSCRIBED, transcript=query
        )
        if cycle_id is None:
            return False

        self._cycle_task = asyncio.create_task(self._reply(cycle_id, query))
        self._cycle_task_id = cycle_id
        self._emit(SessionEventType.STATE_CHANGED)
        return True

    async def wait(self, cycle_id: int | None = None) -> VoiceSessionState | None:
        """Wait for the current cycle to finish and return the final state.

        With *cycle_id*, wait for that cycle only: returns its final state,
        or None if it was superseded or closed before finishing.
        """
        task = self._cycle_task
        if cycle_id is not None and cycle_id != self._cycle_task_id:
            return None
        if task is not None and not task.done():
            await asyncio.wait({task})
        if cycle_id is None:
            return self._state
        if task is None or task.cancelled():
            return None
        return task.result()

    async def wait_for_speech(self) -> None:
        """Wait until every handed-off utterance has finished."""
        if self._speech_tasks:
            await asyncio.gather(*self._speech_tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel any in-flight cycle and reset to idle.

        Utterances already handed to the synthesizer keep playing.
        """
        await self._cancel_cycle()
        self._cycle_id += 1
        self._replace(VoiceSessionState(cycle_id=self._cycle_id))
        logger.info("Session %s closed", self._session_id)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def _begin_cycle(self, **initial) -> int | None:
        """Claim a new cycle, superseding a cycle that awaits its reply.

        The fresh state is installed with no await between the final
        in-flight check and the claim, so concurrent callers cannot both
        end up with a running cycle.
        """
        while True:
            if self._state.listening:
                logger.info(
                    "Session %s: already listening — ignoring start", self._session_id
                )
                return None
            if not self.in_flight:
                break
            logger.info(
                "Session %s: superseding cycle %d", self._session_id, self._cycle_id
            )
            await self._cancel_cycle()

        self._cycle_id += 1
        self._state = VoiceSessionState(cycle_id=self._cycle_id, **initial)
        return self._cycle_id

    async def _cancel_cycle(self) -> None:
        task = self._cycle_task
        self._cycle_task = None
        if task is None or task.done():
            return
        if self._recognizer is not None:
            self._recognizer.cancel()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _listen_and_reply(
        self, cycle_id: int, recognizer: SpeechRecognizer
    ) -> VoiceSessionState | None:
        """Run one spoken cycle; returns its final state, None if superseded."""
        try:
            transcript = await self._recognize(recognizer)
        except asyncio.CancelledError:
            logger.debug("Cycle %d cancelled while listening", cycle_id)
            raise

        if transcript is None:
            if not self._update(
                cycle_id,
                phase=SessionPhase.IDLE,
                listening=False,
                error=ErrorKind.RECOGNITION_ERROR,
            ):
                return None
            return self._state

        if not self._update(
            cycle_id,
            phase=SessionPhase.TRANSCRIBED,
            listening=False,
            transcript=transcript,
        ):
            return None
        return await self._reply(cycle_id, transcript)

    async def _recognize(self, recognizer: SpeechRecognizer) -> str | None:
        """Return the first alternative of the first result, or None."""
        try:
            results = await recognizer.recognize(
                self._locale, interim_results=False, max_alternatives=1
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning(
                "Session %s: recognition failed", self._session_id, exc_info=True
            )
            return None

        if not results or not results[0]:
            logger.info("Session %s: recognition ended with no result", self._session_id)
            return None
        transcript = results[0][0].transcript.strip()
        return transcript or None

    async def _reply(self, cycle_id: int, transcript: str) -> VoiceSessionState | None:
        request = build_request(transcript, self._locale)
        if not self._update(
            cycle_id, phase=SessionPhase.AWAITING_REPLY, loading=True
        ):
            return None

        try:
            response = await self._client.complete(request)
        except asyncio.CancelledError:
            logger.debug("Cycle %d cancelled while awaiting reply", cycle_id)
            raise
        except Exception:
            logger.warning(
                "Session %s: completion failed", self._session_id, exc_info=True
            )
            fallback = fallback_for(self._locale)
            if not self._update(
                cycle_id,
                phase=SessionPhase.FAILED,
                loading=False,
                reply=fallback,
                error=ErrorKind.REMOTE_CALL_ERROR,
            ):
                return None
            if self._speak_failures:
                self._speak(fallback)
            return self._state

        if not self._update(
            cycle_id, phase=SessionPhase.REPLIED, loading=False, reply=response.text
        ):
            return None
        logger.info("Session %s: replied (%d chars)", self._session_id, len(response.text))
        self._speak(response.text)
        return self._state

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def _speak(self, text: str) -> None:
        """Hand *text* to the synthesizer without waiting for it."""
        if not self.synthesis_available:
            logger.debug("Speech output unavailable — reply shown only")
            return
        task = asyncio.create_task(self._synthesizer.speak(text, self._locale))
        self._speech_tasks.add(task)
        task.add_done_callback(self._speech_tasks.discard)

    def _notify(self, message: str) -> None:
        if self._notifier is not None:
            try:
                self._notifier(message)
            except Exception:
                logger.warning("Notifier failed", exc_info=True)
        self._emit(SessionEventType.NOTIFICATION, message)

    def _update(self, cycle_id: int, **changes) -> bool:
        """Apply *changes* unless *cycle_id* has been superseded."""
        if cycle_id != self._cycle_id:
            logger.debug("Dropping state write from stale cycle %d", cycle_id)
            return False
        self._replace(self._state.model_copy(update=changes))
        return True

    def _replace(self, state: VoiceSessionState) -> None:
        self._state = state
        logger.debug("Session %s -> %s", self._session_id, state.phase.value)
        self._emit(SessionEventType.STATE_CHANGED)

    def _emit(self, event_type: SessionEventType, message: str | None = None) -> None:
        if self._event_bus is None:
            return
        self._event_bus.publish(
            SessionEvent(
                type=event_type,
                session_id=self._session_id,
                state=self._state,
                message=message,
            )
        )
