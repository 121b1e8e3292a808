"""Gemini ``generateContent`` HTTP client.

One call equals one attempt: there are no retries, no rate limiting and no
caching.  Every failure (network, timeout, non-2xx status, unexpected
payload shape, missing credential) is raised as :class:`RemoteCallError`.
The credential is never written to the log, including httpx's own request
lines, which carry the full URL and so the ``key`` query parameter.
"""

import logging

import httpx

from sakhii.config import (
    GEMINI_API_KEY,
    GEMINI_AUTH_MODE,
    GEMINI_BASE_URL,
    GEMINI_MODEL,
    GEMINI_TIMEOUT,
)
from sakhii.errors import RemoteCallError
from sakhii.voice.types import AssistantRequest, AssistantResponse

logger = logging.getLogger(__name__)

_REDACTED = "[redacted]"


class _RedactKeyFilter(logging.Filter):
    """Masks the Gemini API key in records logged by httpx."""

    def filter(self, record: logging.LogRecord) -> bool:
        if GEMINI_API_KEY:
            message = record.getMessage()
            if GEMINI_API_KEY in message:
                record.msg = message.replace(GEMINI_API_KEY, _REDACTED)
                record.args = None
        return True


def install_key_redaction() -> None:
    """Attach the key filter to the ``httpx`` logger once."""
    httpx_logger = logging.getLogger("httpx")
    if not any(isinstance(f, _RedactKeyFilter) for f in httpx_logger.filters):
        httpx_logger.addFilter(_RedactKeyFilter())


class GeminiClient:
    """Async client for the hosted Gemini text-generation API."""

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        """Create the HTTP client.  A missing key is not validated here."""
        install_key_redaction()
        headers = {}
        if GEMINI_AUTH_MODE == "header" and GEMINI_API_KEY:
            headers["x-goog-api-key"] = GEMINI_API_KEY
        self._client = httpx.AsyncClient(
            base_url=GEMINI_BASE_URL,
            timeout=GEMINI_TIMEOUT,
            headers=headers,
            transport=self._transport,
        )
        if not GEMINI_API_KEY:
            logger.warning("GEMINI_API_KEY is not set — completion calls will fail")
        else:
            logger.info(
                "Gemini client ready at %s (model: %s, auth: %s)",
                GEMINI_BASE_URL,
                GEMINI_MODEL,
                GEMINI_AUTH_MODE,
            )

    async def stop(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def is_configured(self) -> bool:
        """Whether a credential is present.  Says nothing about its validity."""
        return bool(GEMINI_API_KEY)

    async def complete(self, request: AssistantRequest) -> AssistantResponse:
        """Send an :class:`AssistantRequest` and return the first candidate's text."""
        return await self.generate(request.prompt_text)

    async def generate(self, prompt_text: str, *, model: str | None = None) -> AssistantResponse:
        """POST a single user turn to ``generateContent``.

        Raises RemoteCallError on any failure.
        """
        if self._client is None:
            raise RemoteCallError("Gemini client is not started")

        model = model or GEMINI_MODEL
        params = {}
        if GEMINI_AUTH_MODE != "header":
            params["key"] = GEMINI_API_KEY
        body = {"contents": [{"role": "user", "parts": [{"text": prompt_text}]}]}

        try:
            response = await self._client.post(
                f"/v1beta/models/{model}:generateContent",
                params=params,
                json=body,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            # str(exc) carries the request URL, which carries the key.
            logger.warning(
                "Gemini returned status %d", exc.response.status_code
            )
            raise RemoteCallError(
                f"completion failed with status {exc.response.status_code}"
            ) from None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Gemini request failed: %s", type(exc).__name__)
            raise RemoteCallError(
                f"completion request failed: {type(exc).__name__}"
            ) from None

        text = extract_text(data)
        logger.debug("Gemini reply (%d chars)", len(text))
        return AssistantResponse(text=text)


def extract_text(data: object) -> str:
    """Return ``candidates[0].content.parts[0].text`` or raise RemoteCallError."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        logger.warning("Gemini response has no candidate text")
        raise RemoteCallError("malformed completion response") from None
    if not isinstance(text, str):
        logger.warning("Gemini candidate text is %s, not str", type(text).__name__)
        raise RemoteCallError("malformed completion response")
    return text
