"""Pydantic models and enums for the voice session."""

import time
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class SessionPhase(str, Enum):
    """Where a voice session is in its listen → ask → reply cycle."""

    IDLE = "idle"
    LISTENING = "listening"
    TRANSCRIBED = "transcribed"
    AWAITING_REPLY = "awaiting_reply"
    REPLIED = "replied"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Coarse failure category recorded on the session."""

    CAPABILITY_UNAVAILABLE = "capability_unavailable"
    RECOGNITION_ERROR = "recognition_error"
    REMOTE_CALL_ERROR = "remote_call_error"


class VoiceSessionState(BaseModel):
    """Immutable snapshot of a voice session."""

    model_config = ConfigDict(frozen=True)

    phase: SessionPhase = SessionPhase.IDLE
    listening: bool = False
    transcript: str | None = None
    reply: str | None = None
    loading: bool = False
    error: ErrorKind | None = None
    cycle_id: int = 0


class AssistantRequest(BaseModel):
    """A finalized user query wrapped in the assistant preamble."""

    model_config = ConfigDict(frozen=True)

    query_text: str
    system_preamble: str

    @property
    def prompt_text(self) -> str:
        """The single user-turn text sent to the model."""
        return f"{self.system_preamble}\n\nUser Query: {self.query_text}"


class AssistantResponse(BaseModel):
    """Text extracted from the first candidate of a completion."""

    model_config = ConfigDict(frozen=True)

    text: str


class SessionEventType(str, Enum):
    """Types of events published by a voice session."""

    STATE_CHANGED = "state_changed"
    NOTIFICATION = "notification"


class SessionEvent(BaseModel):
    """A state change or user-facing notification from a voice session."""

    type: SessionEventType
    session_id: str
    state: VoiceSessionState
    message: str | None = None
    timestamp: float = Field(default_factory=time.time)
    event_id: str = Field(default_factory=lambda: str(uuid4()))
