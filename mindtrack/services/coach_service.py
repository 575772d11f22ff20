"""
COACH SERVICE MODULE
====================

Relays a coaching conversation to Gemini and turns the answer into the event
stream the browser chat expects. Used by POST /chat.

CONTEXT (built fresh for every request, in this order):
  1. The coach persona.
  2. Mood trend: average score over all supplied samples (one decimal) and the
     sample count, then up to the first three labels.
  3. A fixed line if the user has recent journal entries (entry text is never sent).
  4. Active challenge descriptions.
  5. Closing instructions on tone and response length.

Gemini has no system role in this request shape, so the context goes first as a
user turn, followed by the history (assistant turns replayed as "model") and
the new message.

STREAM:
  prepare() makes the Gemini call up front, so a failed request surfaces as an
  error response before any byte is streamed. The returned iterator then yields
  one SSE event per word at settings.stream_interval_seconds, then [DONE].
  No text in the response -> one event with FALLBACK_COACH_REPLY, then [DONE].
"""

import logging
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence

from google.genai import types

from mindtrack.config import (
    COACH_CLOSING,
    COACH_JOURNAL_NOTE,
    COACH_MAX_OUTPUT_TOKENS,
    COACH_PERSONA,
    COACH_TEMPERATURE,
    FALLBACK_COACH_REPLY,
)
from mindtrack.models import Challenge, ChatTurn, MoodSample
from mindtrack.services.gemini_service import GeminiService, extract_text, model_turn, user_turn
from mindtrack.utils.streaming import DONE_EVENT, format_event, paced, split_tokens

logger = logging.getLogger("MindTrack")

# Number of most recent mood labels mentioned in the context.
RECENT_MOOD_LABELS = 3


def build_context(
    mood_history: Sequence[MoodSample],
    recent_journal: Sequence[object],
    active_challenges: Sequence[Challenge],
) -> str:
    """Assemble the coaching context. Deterministic: same inputs, same text."""
    context = COACH_PERSONA

    if mood_history:
        # Samples without a score still count toward the average (as 0).
        average = sum(m.mood_score or 0 for m in mood_history) / len(mood_history)
        context += (
            f"\n\nUser's recent mood trend: Average score {average:.1f}/10 "
            f"over the last {len(mood_history)} entries."
        )
        recent_moods = ", ".join(
            m.mood_label for m in mood_history[:RECENT_MOOD_LABELS] if m.mood_label
        )
        if recent_moods:
            context += f"\nRecent moods: {recent_moods}"

    if recent_journal:
        context += f"\n\n{COACH_JOURNAL_NOTE}"

    descriptions = ", ".join(c.description for c in active_challenges if c.description)
    if descriptions:
        context += f"\n\nActive challenges: {descriptions}"

    context += f"\n\n{COACH_CLOSING}"
    return context


def build_contents(context: str, history: Sequence[ChatTurn], message: str) -> List[types.Content]:
    """Context first, then prior turns oldest-first, then the new message."""
    contents = [user_turn(context)]
    for turn in history:
        contents.append(user_turn(turn.content) if turn.role == "user" else model_turn(turn.content))
    contents.append(user_turn(message))
    return contents


# ==============================================================================
# COACH SERVICE CLASS
# ==============================================================================

class CoachService:
    """
    Stateless chat relay. interval is the delay between streamed words (seconds);
    0 sends them back to back.
    """

    def __init__(self, gemini_service: GeminiService, interval: float = 0.05):
        self.gemini_service = gemini_service
        self.interval = interval

    async def get_reply(
        self,
        message: str,
        history: Sequence[ChatTurn] = (),
        mood_history: Sequence[MoodSample] = (),
        recent_journal: Sequence[object] = (),
        active_challenges: Sequence[Challenge] = (),
    ) -> Optional[str]:
        """
        Ask Gemini for the coach's reply. Returns None when the response has no usable text.
        Raises ProviderError if the request fails.
        """
        context = build_context(mood_history, recent_journal, active_challenges)
        contents = build_contents(context, history, message)
        logger.info("Coach request: %s history turns, %s mood samples", len(history), len(mood_history))

        response = await self.gemini_service.generate(
            contents,
            temperature=COACH_TEMPERATURE,
            max_output_tokens=COACH_MAX_OUTPUT_TOKENS,
        )
        return extract_text(response, fallback=None)

    async def prepare(
        self,
        message: str,
        history: Sequence[ChatTurn] = (),
        mood_history: Sequence[MoodSample] = (),
        recent_journal: Sequence[object] = (),
        active_challenges: Sequence[Challenge] = (),
        is_closed: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> AsyncIterator[str]:
        """
        Call Gemini now and return the event stream for its answer.

        Awaiting this raises ProviderError on a failed request; iterating the
        result never calls Gemini again.
        """
        reply = await self.get_reply(message, history, mood_history, recent_journal, active_challenges)
        if reply is None:
            return self._fallback_events()
        return self._reply_events(reply, is_closed)

    async def _fallback_events(self) -> AsyncIterator[str]:
        yield format_event(FALLBACK_COACH_REPLY)
        yield DONE_EVENT

    async def _reply_events(
        self,
        reply: str,
        is_closed: Optional[Callable[[], Awaitable[bool]]],
    ) -> AsyncIterator[str]:
        tokens = split_tokens(reply)
        sent = 0
        async for token in paced(tokens, self.interval, is_closed):
            yield format_event(token)
            sent += 1
        if sent < len(tokens):
            logger.info("Client disconnected after %s/%s tokens", sent, len(tokens))
            return
        yield DONE_EVENT
