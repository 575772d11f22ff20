"""
SENTIMENT SERVICE MODULE
========================

Classifies a journal entry into a mood label and a 1-10 mood score using Gemini.
Used by POST /analyze-sentiment.

FLOW:
  1. build_sentiment_prompt(text): fixed instructions + allowed labels + score bands + entry.
  2. One Gemini call at low temperature with a small output budget.
  3. parse_mood_result(content): strip ``` fences, parse the JSON object, coerce the score.

FALLBACKS:
  The caller saves the journal entry whether or not a mood comes back, so anything
  short of a failed request resolves to a result:
  - No text in the response (empty, or blocked for safety) -> neutral / 5.
  - Text that is not a JSON object, or a score that is not a number -> neutral / 5.
  A failed request (error status, timeout) raises ProviderError instead.
"""

import json
import logging
import re
from typing import Any, Optional, Union

from mindtrack.config import (
    NEUTRAL_MOOD_LABEL,
    NEUTRAL_MOOD_SCORE,
    SENTIMENT_MAX_OUTPUT_TOKENS,
    SENTIMENT_TEMPERATURE,
    build_sentiment_prompt,
)
from mindtrack.models import SentimentResult
from mindtrack.services.gemini_service import GeminiService, extract_text, user_turn

logger = logging.getLogger("MindTrack")

# Matches ```json / ``` fences together with the newline that may follow them.
_CODE_FENCE_RE = re.compile(r"```json\n?|```\n?")


def neutral_result() -> SentimentResult:
    return SentimentResult(mood_label=NEUTRAL_MOOD_LABEL, mood_score=NEUTRAL_MOOD_SCORE)


def strip_code_fences(content: str) -> str:
    return _CODE_FENCE_RE.sub("", content).strip()


def coerce_score(value: Any) -> Optional[Union[int, float]]:
    """Turn the model's score into a number (7, 7.5, "7" -> 7). None if it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None

    if number != number or number in (float("inf"), float("-inf")):
        return None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def parse_mood_result(content: str) -> SentimentResult:
    """Parse the model's (possibly fenced) JSON answer. Malformed answers give the neutral result."""
    cleaned = strip_code_fences(content)
    try:
        payload = json.loads(cleaned)
    except ValueError:
        logger.warning("Sentiment response is not valid JSON, using neutral mood: %r", cleaned[:200])
        return neutral_result()

    if not isinstance(payload, dict):
        logger.warning("Sentiment response is not a JSON object, using neutral mood: %r", cleaned[:200])
        return neutral_result()

    score = coerce_score(payload.get("mood_score"))
    if score is None:
        logger.warning("Sentiment response has no numeric mood_score, using neutral mood: %r", payload)
        return neutral_result()

    label = payload.get("mood_label")
    return SentimentResult(mood_label=label if isinstance(label, str) else None, mood_score=score)


# ==============================================================================
# SENTIMENT SERVICE CLASS
# ==============================================================================

class SentimentService:
    """Stateless: one Gemini call per analyze() and nothing kept between calls."""

    def __init__(self, gemini_service: GeminiService):
        self.gemini_service = gemini_service

    async def analyze(self, text: str) -> SentimentResult:
        """
        Classify one journal entry. text must be non-empty (the route checks this).
        Raises ProviderError if the Gemini request fails.
        """
        response = await self.gemini_service.generate(
            [user_turn(build_sentiment_prompt(text))],
            temperature=SENTIMENT_TEMPERATURE,
            max_output_tokens=SENTIMENT_MAX_OUTPUT_TOKENS,
        )
        content = extract_text(response, fallback=None)
        if content is None:
            return neutral_result()

        result = parse_mood_result(content)
        logger.info("Sentiment: %s (%s)", result.mood_label, result.mood_score)
        return result
