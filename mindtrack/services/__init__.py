"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (mindtrack.main) calls these services;
they don't handle HTTP, only prompts, Gemini calls, and response shaping.

MODULES:
    gemini_service    - GeminiService (the only code calling Gemini), ProviderError, extract_text
    sentiment_service - SentimentService: journal entry -> mood label + score
    coach_service     - CoachService: conversation -> streamed coach reply
"""
