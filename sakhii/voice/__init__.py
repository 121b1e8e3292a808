"""Voice session: recognition → completion → synthesis round-trip.

Only the plain data types are re-exported here.  The controller lives in
:mod:`sakhii.voice.session`, which depends on :mod:`sakhii.llm`, and that
package in turn imports these types.
"""

from sakhii.voice.types import (
    AssistantRequest,
    AssistantResponse,
    ErrorKind,
    SessionEvent,
    SessionEventType,
    SessionPhase,
    VoiceSessionState,
)

__all__ = [
    "AssistantRequest",
    "AssistantResponse",
    "ErrorKind",
    "SessionEvent",
    "SessionEventType",
    "SessionPhase",
    "VoiceSessionState",
]
