"""
MINDTRACK COACH MAIN API
========================

This module defines the FastAPI application and its HTTP endpoints. The browser
client (journal page and coach chat) calls these directly; saving journal entries
and chat messages to the data store stays with the client.

ENDPOINTS:
  GET  /                   - Returns API name and list of endpoints.
  GET  /health             - Returns service status and whether a Gemini key is configured.
  POST /analyze-sentiment  - Classifies a journal entry: {text} -> {mood_label, mood_score}.
  POST /chat               - Coach chat: relays the conversation to Gemini and streams the
                             reply back as server-sent events, ending with data: [DONE].

ERRORS:
  Every failure is returned as {"error": "..."}: 400 for a bad request body
  (missing text/message, invalid JSON), 500 when Gemini fails. A chat that fails
  never starts streaming, so the client sees either a full stream or an error.

STARTUP:
  create_app() builds the services from Settings and keeps them on app.state.
  Handlers hold no state between requests.
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from mindtrack.config import Settings
from mindtrack.models import ChatRequest, ErrorResponse, SentimentRequest, SentimentResult
from mindtrack.services.coach_service import CoachService
from mindtrack.services.gemini_service import GeminiService, ProviderError
from mindtrack.services.sentiment_service import SentimentService


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
env_settings = Settings.from_env()

logging.basicConfig(
    level=getattr(logging, env_settings.log_level, logging.INFO),
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("MindTrack")

# Keep HTTP client internals (request headers carry the API key) out of the logs.
for _name in ("httpx", "httpcore", "google_genai"):
    logging.getLogger(_name).setLevel(logging.WARNING)

# Headers the browser client sends with its Supabase session on every call.
CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or invalid request body"},
    500: {"model": ErrorResponse, "description": "Gemini request failed"},
}


# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log service status on startup. Nothing to save on shutdown: every request is self-contained."""
    app_settings: Settings = app.state.settings

    logger.info("=" * 60)
    logger.info("MindTrack Coach API - Starting Up...")
    logger.info("=" * 60)
    logger.info("Service Status:")
    logger.info("    - Gemini model: %s", app_settings.gemini_model)
    logger.info("    - Gemini key: %s", "configured" if app_settings.provider_configured else "MISSING")
    logger.info("    - Sentiment Service: Ready")
    logger.info("    - Coach Service: Ready (%.0f ms per token)", app_settings.stream_interval_seconds * 1000)
    logger.info("=" * 60)

    yield

    logger.info("Shutting down MindTrack Coach API. Goodbye!")


# -------------------------------------------------------------------------
# ERROR ENVELOPE
# -------------------------------------------------------------------------

async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException as {"error": detail} instead of FastAPI's {"detail": ...}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or wrongly typed fields are client errors: 400, not 422."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request body")
    logger.warning("Rejected request body on %s: %s", request.url.path, errors)
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid request body: {location + ': ' if location else ''}{message}"},
    )


# =========================================================================
# API ENDPOINTS
# =========================================================================

router = APIRouter()


@router.get("/")
async def root():
    """Return the API name and a short description of each endpoint (for discovery)."""
    return {
        "message": "MindTrack Coach API",
        "endpoints": {
            "/analyze-sentiment": "Classify a journal entry into a mood label and score",
            "/chat": "Wellness coach chat (server-sent event stream)",
            "/health": "System health check"
        }
    }


@router.get("/health")
async def health(request: Request):
    """Return 'healthy' and whether each service is initialized and a Gemini key is set."""
    state = request.app.state
    return {
        "status": "healthy",
        "sentiment_service": getattr(state, "sentiment_service", None) is not None,
        "coach_service": getattr(state, "coach_service", None) is not None,
        "provider_configured": state.settings.provider_configured,
    }


@router.post("/analyze-sentiment", response_model=SentimentResult, responses=ERROR_RESPONSES)
async def analyze_sentiment(request: Request, body: Optional[SentimentRequest] = None):
    """
    Sentiment endpoint - classify one journal entry.

    REQUEST BODY:
    {
        "text": "Had a long walk and felt lighter afterwards."
    }

    RESPONSE:
    {
        "mood_label": "calm",
        "mood_score": 7
    }

    If Gemini returns nothing usable (empty, blocked, or not JSON) the response is
    {"mood_label": "neutral", "mood_score": 5}. If the Gemini request fails the
    response is a 500 and the client saves the entry without a mood.
    """
    if body is None or not body.text:
        raise HTTPException(status_code=400, detail="Text is required")

    sentiment_service: SentimentService = request.app.state.sentiment_service
    try:
        return await sentiment_service.analyze(body.text)
    except ProviderError as e:
        logger.error(f"Sentiment analysis failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Error analyzing sentiment: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error analyzing sentiment: {str(e)}")


@router.post("/chat", responses=ERROR_RESPONSES)
async def chat(request: Request, body: Optional[ChatRequest] = None):
    """
    Coach chat endpoint - stream the coach's reply to a message.

    HOW IT WORKS:
    1. Builds the coaching context from mood history, journal presence and challenges
    2. Sends context + conversation history + the new message to Gemini
    3. Streams the answer word by word as server-sent events
    4. Ends the stream with data: [DONE]

    REQUEST BODY:
    {
        "message": "I can't switch off after work.",
        "conversationHistory": [{"role": "user", "content": "..."}, {"role": "assistant", "content": "..."}],
        "moodHistory": [{"mood_label": "stressed", "mood_score": 4}],
        "recentJournal": [...],
        "activeChallenges": [{"description": "10 minutes of breathing daily"}]
    }

    RESPONSE (text/event-stream):
    data: {"choices":[{"delta":{"content":"That"}}]}
    data: {"choices":[{"delta":{"content":" sounds"}}]}
    ...
    data: [DONE]
    """
    if body is None or not body.message or not body.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    coach_service: CoachService = request.app.state.coach_service
    try:
        # Gemini is called here, before streaming starts, so failures become a 500.
        events = await coach_service.prepare(
            body.message,
            history=body.conversation_history,
            mood_history=body.mood_history,
            recent_journal=body.recent_journal,
            active_challenges=body.active_challenges,
            is_closed=request.is_disconnected,
        )
    except ProviderError as e:
        logger.error(f"Coach chat failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Error processing chat: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error processing chat: {str(e)}")

    return StreamingResponse(
        events,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------

def create_app(
    settings: Optional[Settings] = None,
    gemini_service: Optional[GeminiService] = None,
) -> FastAPI:
    """
    Build the FastAPI app. settings defaults to the environment; gemini_service
    defaults to a real GeminiService built from those settings.
    """
    settings = settings or env_settings
    gemini_service = gemini_service or GeminiService(settings)

    app = FastAPI(
        title="MindTrack Coach API",
        description="Journal sentiment analysis and wellness coach chat",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.sentiment_service = SentimentService(gemini_service)
    app.state.coach_service = CoachService(gemini_service, interval=settings.stream_interval_seconds)

    # Open CORS by default so the browser client can call from any origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)
    return app


app = create_app()


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m mindtrack.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py); used if someone does python -m mindtrack.main"""
    uvicorn.run(
        "mindtrack.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    run()
