"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for MindTrack Coach settings: the Gemini API key and model,
  request timeout and retry budget, stream pacing, CORS origins, and the
  prompt text sent to the model for sentiment analysis and coaching.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Defines Settings, a read-only snapshot of the environment. It is built once
    by create_app() and handed to every service, so no handler looks up the
    environment on its own.
  - Holds the fixed mood vocabulary, the neutral fallback result, generation
    parameters, and the prompt templates.

USAGE:
  settings = Settings.from_env()
  service = SentimentService(GeminiService(settings))
"""

import logging
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict


logger = logging.getLogger("MindTrack")


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()


# ============================================================================
# MOOD VOCABULARY
# ============================================================================
# The labels the classifier is asked to choose from. Results are passed through
# as the model returns them; this list only shapes the prompt.
MOOD_LABELS = ["happy", "sad", "anxious", "neutral", "excited", "calm", "stressed"]

# Returned whenever the model gives us nothing usable, so journaling never blocks.
NEUTRAL_MOOD_LABEL = "neutral"
NEUTRAL_MOOD_SCORE = 5

# ============================================================================
# GENERATION PARAMETERS
# ============================================================================
# Sentiment wants a short, predictable JSON answer; the coach gets more room.
SENTIMENT_TEMPERATURE = 0.3
SENTIMENT_MAX_OUTPUT_TOKENS = 300

COACH_TEMPERATURE = 0.7
COACH_MAX_OUTPUT_TOKENS = 4096

# Sent through the normal stream when the model returns no text (empty or blocked).
FALLBACK_COACH_REPLY = (
    "I understand you're reaching out. "
    "Could you tell me more about what's on your mind today?"
)

# ============================================================================
# PROMPTS
# ============================================================================

SENTIMENT_PROMPT_TEMPLATE = """You are a sentiment analysis expert for a mental health journaling app.
Analyze the given journal entry and respond with ONLY a JSON object in this exact format:
{{
  "mood_label": "{labels}",
  "mood_score": <number 1-10>
}}

Where:
- mood_score: 1-3 = very negative, 4-5 = somewhat negative, 6-7 = neutral/ok, 8-9 = positive, 10 = very positive
- mood_label: choose the most fitting emotion from the list

Respond with ONLY the JSON object, no additional text.

Journal entry: {text}"""

COACH_PERSONA = """You are a compassionate mental wellness coach for the MindTrack app.
Provide supportive, encouraging, and actionable advice."""

# Only a flag reaches the prompt; journal text itself is never sent to the coach.
COACH_JOURNAL_NOTE = (
    "Recent journal themes: User has been reflecting on personal growth and daily experiences."
)

COACH_CLOSING = (
    "Respond naturally and adapt your response length to what's needed. "
    "Give brief acknowledgments when appropriate, but provide comprehensive, detailed advice "
    "when the situation calls for it. Elaborate on techniques, strategies, or explanations "
    "when it helps the user better understand or apply your guidance. "
    "Always be empathetic and supportive."
)


def build_sentiment_prompt(text: str) -> str:
    """Fill the sentiment template with the allowed labels and the entry text."""
    return SENTIMENT_PROMPT_TEMPLATE.format(labels="|".join(MOOD_LABELS), text=text)


# ============================================================================
# SETTINGS
# ============================================================================

def _env_float(name: str, default: float, low: float, high: float) -> float:
    """Read a float from the environment, clamped to [low, high]; bad values fall back to default."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(low, min(high, float(raw)))
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_int(name: str, default: int, low: int, high: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(low, min(high, int(raw)))
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_origins() -> List[str]:
    # Comma-separated origins (e.g. http://localhost:3000) or * for all.
    raw = os.getenv("CORS_ORIGINS", "*").strip()
    if not raw or raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseModel):
    """
    Process-wide configuration, read once at startup and never mutated.

    - gemini_api_key: Credential for the Gemini API. Empty means every provider
      call fails with an upstream error (the server still boots).
    - gemini_model: Model used by both handlers.
    - provider_timeout_seconds: Upper bound on a single Gemini request.
    - provider_max_retries: Attempts per provider call (1 = no retry).
    - stream_interval_seconds: Delay between streamed chat tokens.
    - cors_origins: Allowed browser origins; ["*"] allows any.
    - log_level: Root logging level name.
    """

    model_config = ConfigDict(frozen=True)

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    provider_timeout_seconds: float = 30.0
    provider_max_retries: int = 1
    stream_interval_seconds: float = 0.05
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    @property
    def provider_configured(self) -> bool:
        return bool(self.gemini_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment (after .env has been loaded)."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", "").strip(),
            gemini_model=(os.getenv("GEMINI_MODEL", "").strip() or "gemini-2.5-flash"),
            provider_timeout_seconds=_env_float("GEMINI_TIMEOUT_SECONDS", 30.0, 1.0, 300.0),
            provider_max_retries=_env_int("GEMINI_MAX_RETRIES", 1, 1, 5),
            stream_interval_seconds=_env_float("STREAM_INTERVAL_MS", 50.0, 0.0, 5000.0) / 1000.0,
            cors_origins=_env_origins(),
            log_level=(os.getenv("LOG_LEVEL", "").strip().upper() or "INFO"),
        )
