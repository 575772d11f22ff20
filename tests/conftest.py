from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from google.genai import types

from mindtrack.config import Settings
from mindtrack.main import create_app


def make_response(
    text: Optional[str] = None,
    finish_reason: types.FinishReason = types.FinishReason.STOP,
) -> types.GenerateContentResponse:
    """A Gemini response with one candidate; text=None gives a candidate with no content."""
    content = None
    if text is not None:
        content = types.Content(role="model", parts=[types.Part(text=text)])
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=content, finish_reason=finish_reason)]
    )


class FakeGemini:
    """Stands in for GeminiService: records every request and replays a canned response or error."""

    def __init__(self, response=None, error: Optional[Exception] = None):
        self.response = response if response is not None else make_response("")
        self.error = error
        self.calls: List[dict] = []

    async def generate(self, contents, temperature, max_output_tokens):
        self.calls.append(
            {"contents": contents, "temperature": temperature, "max_output_tokens": max_output_tokens}
        )
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings():
    return Settings(gemini_api_key="test-key", stream_interval_seconds=0.0)


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def client(settings, fake_gemini):
    app = create_app(settings, gemini_service=fake_gemini)
    with TestClient(app) as test_client:
        yield test_client
