"""
GEMINI SERVICE MODULE
=====================

The one place that talks to the Gemini API. Both the sentiment classifier and
the coach relay go through GeminiService.generate(); neither touches the SDK.

BEHAVIOUR:
  - One request per call, bounded by settings.provider_timeout_seconds.
  - Any failed call (HTTP error status, timeout, network error, missing key)
    is raised as ProviderError and logged with its status and body.
  - Retries only happen when settings.provider_max_retries > 1, and only for
    failures that can succeed later (no status, 429, 5xx).
  - A successful response with no usable text (empty, or blocked for
    SAFETY/RECITATION) is not an error: extract_text() returns the fallback
    the caller chose.

The SDK client is created on first use so the server can start (and report
its health) without GEMINI_API_KEY set.
"""

import logging
from typing import List, Optional, TypeVar, Union

from google import genai
from google.genai import errors, types

from mindtrack.config import Settings
from mindtrack.utils.retry import with_retry

logger = logging.getLogger("MindTrack")

T = TypeVar("T")

# Finish reasons that mean the model withheld its answer on policy grounds.
BLOCKED_FINISH_REASONS = (types.FinishReason.SAFETY, types.FinishReason.RECITATION)


class ProviderError(Exception):
    """Raised when the Gemini request itself fails. status_code is None for transport failures."""

    def __init__(self, status_code: Optional[int], message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Gemini API error: {status_code if status_code is not None else 'no response'} - {message}")

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code == 429 or self.status_code >= 500


def extract_text(response: types.GenerateContentResponse, fallback: T) -> Union[str, T]:
    """
    Return the text of the first candidate's first part, or fallback if there is none.

    Text cut short by the output-token limit is still returned; only missing or
    blank text falls back. The finish reason is logged so blocked answers show up.
    """
    candidates = response.candidates or []
    candidate = candidates[0] if candidates else None
    parts = candidate.content.parts if candidate and candidate.content and candidate.content.parts else []
    text = parts[0].text if parts else None

    if text and text.strip():
        return text

    finish_reason = candidate.finish_reason if candidate else None
    if finish_reason in BLOCKED_FINISH_REASONS:
        logger.error("Gemini response blocked: %s", finish_reason)
    else:
        logger.error("No content in Gemini response. Finish reason: %s", finish_reason)
    return fallback


def user_turn(text: str) -> types.Content:
    return types.Content(role="user", parts=[types.Part(text=text)])


def model_turn(text: str) -> types.Content:
    return types.Content(role="model", parts=[types.Part(text=text)])


# ==============================================================================
# GEMINI SERVICE CLASS
# ==============================================================================

class GeminiService:
    """
    Thin async wrapper over google-genai's generate_content.

    settings is injected (never read from the environment here). client can be
    passed in to reuse an existing genai.Client; otherwise one is built lazily.
    """

    def __init__(self, settings: Settings, client: Optional[genai.Client] = None):
        self.settings = settings
        self._client = client
        if not settings.provider_configured and client is None:
            logger.warning("GEMINI_API_KEY not set. Sentiment and coach requests will fail.")

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not self.settings.provider_configured:
                raise ProviderError(None, "GEMINI_API_KEY is not configured")
            self._client = genai.Client(
                api_key=self.settings.gemini_api_key,
                # HttpOptions.timeout is in milliseconds.
                http_options=types.HttpOptions(timeout=int(self.settings.provider_timeout_seconds * 1000)),
            )
        return self._client

    async def generate(
        self,
        contents: List[types.Content],
        temperature: float,
        max_output_tokens: int,
    ) -> types.GenerateContentResponse:
        """Send one generate_content request and return the raw response, or raise ProviderError."""
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )

        client = self.client

        async def _call() -> types.GenerateContentResponse:
            try:
                return await client.aio.models.generate_content(
                    model=self.settings.gemini_model,
                    contents=contents,
                    config=config,
                )
            except errors.APIError as e:
                logger.error("Gemini API error: %s %s", e.code, e.message)
                raise ProviderError(e.code, e.message or str(e)) from e
            except Exception as e:
                # Timeouts and connection failures from the HTTP layer.
                logger.error("Gemini request failed: %s", e)
                raise ProviderError(None, str(e) or type(e).__name__) from e

        return await with_retry(
            _call,
            max_retries=self.settings.provider_max_retries,
            initial_delay=1.0,
            should_retry=lambda e: isinstance(e, ProviderError) and e.retryable,
        )
