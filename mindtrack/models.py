"""
DATA MODELS MODULE
==================

This file defines the Pydantic models used for API requests and responses.
FastAPI uses these to validate incoming JSON and to serialize responses.

The browser client sends camelCase keys (conversationHistory, moodHistory, ...),
so those are declared as aliases; snake_case names are accepted too. Unknown
keys are ignored so the client can send whole rows from the data store.

MODELS:
  SentimentRequest  - Body of POST /analyze-sentiment (the journal entry text).
  SentimentResult   - Body returned by POST /analyze-sentiment.
  ChatTurn          - One prior message in a coaching conversation (role + content).
  MoodSample        - A recent mood label/score pair used for coaching context.
  Challenge         - An active challenge; only the description is used.
  ChatRequest       - Body of POST /chat.
  ErrorResponse     - The {"error": ...} envelope every failure is returned in.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ==============================================================================
# SENTIMENT
# ==============================================================================

class SentimentRequest(BaseModel):
    """
    Request body for POST /analyze-sentiment.

    text is optional at the schema level so a missing or empty value can be
    answered with the 400 {"error": "Text is required"} envelope rather than
    FastAPI's default 422.
    """
    text: Optional[str] = None


class SentimentResult(BaseModel):
    """
    Mood classification of one journal entry.

    Values are passed through as the model produced them: the label is not
    checked against the allowed list and the score is not range-checked.
    """
    mood_label: Optional[str] = None
    mood_score: Union[int, float]


# ==============================================================================
# CHAT
# ==============================================================================

class ChatTurn(BaseModel):
    role: str       # "user" or "assistant"; anything but "user" is replayed as the model.
    content: str


class MoodSample(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mood_label: Optional[str] = None
    mood_score: Optional[float] = None


class Challenge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: Optional[str] = None


class ChatRequest(BaseModel):
    """
    Request body for POST /chat.

    - message: The new user message (required, non-blank; checked in the route).
    - conversationHistory: Prior turns, oldest first.
    - moodHistory: Recent mood samples, most recent first.
    - recentJournal: Recent journal rows. Only their presence matters.
    - activeChallenges: Challenges the user is working on.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    message: Optional[str] = None
    conversation_history: List[ChatTurn] = Field(default_factory=list, alias="conversationHistory")
    mood_history: List[MoodSample] = Field(default_factory=list, alias="moodHistory")
    recent_journal: List[Any] = Field(default_factory=list, alias="recentJournal")
    active_challenges: List[Challenge] = Field(default_factory=list, alias="activeChallenges")

    @field_validator(
        "conversation_history", "mood_history", "recent_journal", "active_challenges", mode="before"
    )
    @classmethod
    def _null_as_empty(cls, value):
        # The client sends null for lists that have not loaded yet.
        return [] if value is None else value


class ErrorResponse(BaseModel):
    error: str
