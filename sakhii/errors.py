"""Exception types raised by SAKHII components.

Clients raise these; :class:`~sakhii.voice.session.VoiceSession` catches
them and turns them into session state.
"""


class SakhiiError(Exception):
    """Base class for all SAKHII errors."""


class CapabilityUnavailable(SakhiiError):
    """The platform has no usable speech-recognition capability."""


class RecognitionError(SakhiiError):
    """The recognizer failed or produced no result."""


class RemoteCallError(SakhiiError):
    """The completion call failed or returned a malformed payload."""
