"""Configuration constants and helpers for SAKHII."""

import os

DEFAULT_PORT: int = 5000


def get_port() -> int:
    """Return the server port from PORT env var, or DEFAULT_PORT."""
    raw = os.environ.get("PORT")
    if raw is not None:
        try:
            return int(raw)
        except ValueError:
            return DEFAULT_PORT
    return DEFAULT_PORT


# --- Gemini / completion configuration ---

GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", "")
GEMINI_BASE_URL: str = os.environ.get(
    "SAKHII_GEMINI_BASE_URL", "https://generativelanguage.googleapis.com"
)
GEMINI_MODEL: str = os.environ.get("SAKHII_GEMINI_MODEL", "gemini-pro")
GEMINI_TIMEOUT: float = float(os.environ.get("SAKHII_GEMINI_TIMEOUT", "30.0"))
# "query" sends the key as ?key=..., "header" moves it to x-goog-api-key.
GEMINI_AUTH_MODE: str = os.environ.get("SAKHII_GEMINI_AUTH", "query")

# Model used by the POST /ask pass-through.
PROXY_MODEL: str = os.environ.get("SAKHII_PROXY_MODEL", "gemini-1.5-pro-latest")


# --- Locale ---

_LOCALES: dict[str, str] = {
    "en": "en-IN",
    "hi": "hi-IN",
    "ta": "ta-IN",
    "te": "te-IN",
    "bn": "bn-IN",
}

LANGUAGE: str = os.environ.get("SAKHII_LANGUAGE", "en")
LOCALE: str = _LOCALES.get(LANGUAGE.lower(), "en-IN")


# --- Speech recognition (Whisper-compatible API) ---

STT_API_KEY: str = os.environ.get("SAKHII_STT_API_KEY", "")
STT_BASE_URL: str = os.environ.get("SAKHII_STT_BASE_URL", "https://api.openai.com")
STT_MODEL: str = os.environ.get("SAKHII_STT_MODEL", "whisper-1")
STT_TIMEOUT: float = float(os.environ.get("SAKHII_STT_TIMEOUT", "15.0"))

AUDIO_SAMPLE_RATE: int = int(os.environ.get("SAKHII_AUDIO_SAMPLE_RATE", "16000"))
STT_LISTEN_TIMEOUT: float = float(os.environ.get("SAKHII_STT_LISTEN_TIMEOUT", "8.0"))
STT_MAX_RECORD_DURATION: float = float(
    os.environ.get("SAKHII_STT_MAX_RECORD_DURATION", "15.0")
)
STT_SILENCE_THRESHOLD: float = float(
    os.environ.get("SAKHII_STT_SILENCE_THRESHOLD", "0.01")
)
STT_SILENCE_DURATION: float = float(
    os.environ.get("SAKHII_STT_SILENCE_DURATION", "1.5")
)


# --- Speech synthesis (ElevenLabs) ---

ELEVENLABS_API_KEY: str = os.environ.get("SAKHII_ELEVENLABS_API_KEY", "")
ELEVENLABS_BASE_URL: str = os.environ.get(
    "SAKHII_ELEVENLABS_BASE_URL", "https://api.elevenlabs.io"
)
TTS_VOICE_ID: str = os.environ.get("SAKHII_TTS_VOICE_ID", "21m00Tcm4TlvDq8ikWAM")
TTS_MODEL: str = os.environ.get("SAKHII_TTS_MODEL", "eleven_turbo_v2_5")
TTS_TIMEOUT: float = float(os.environ.get("SAKHII_TTS_TIMEOUT", "10.0"))


# --- Voice session behaviour ---

SPEAK_FAILURES: bool = os.environ.get("SAKHII_SPEAK_FAILURES", "1") not in (
    "0",
    "false",
    "no",
)  # Speak the fallback reply aloud the same way as a real reply.
