"""
MINDTRACK COACH APPLICATION PACKAGE
===================================

Server side of the MindTrack wellness app: journal sentiment analysis and the
streaming wellness-coach chat, both backed by Gemini.

  from mindtrack.main import app, create_app
  from mindtrack.config import Settings
  from mindtrack.services.coach_service import CoachService

FILE STRUCTURE:
  mindtrack/
    __init__.py   - This file; marks 'mindtrack' as a package.
    config.py     - Settings from the environment, mood vocabulary, prompts.
    main.py       - FastAPI app and all HTTP endpoints (/analyze-sentiment, /chat, /health).
    models.py     - Pydantic models for API requests and responses.
    services/     - Gemini client wrapper, sentiment classifier, coach chat relay.
    utils/        - Helpers: retry with backoff, SSE framing and token pacing.
"""
