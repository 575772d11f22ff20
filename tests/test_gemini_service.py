from types import SimpleNamespace

import pytest
from google.genai import errors, types

from mindtrack.config import Settings
from mindtrack.services.gemini_service import GeminiService, ProviderError, extract_text, user_turn

from conftest import make_response


class FakeModels:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    async def generate_content(self, model, contents, config):
        self.requests.append({"model": model, "contents": contents, "config": config})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def fake_client(*outcomes):
    models = FakeModels(outcomes)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    async def instant(_delay):
        return None

    monkeypatch.setattr("mindtrack.utils.retry.asyncio.sleep", instant)


def test_extract_text_returns_first_part():
    assert extract_text(make_response("hello"), fallback=None) == "hello"


def test_extract_text_truncated_answer_still_counts():
    response = make_response("partial answer", types.FinishReason.MAX_TOKENS)
    assert extract_text(response, fallback="x") == "partial answer"


@pytest.mark.parametrize(
    "response",
    [
        make_response(""),
        make_response(" \n "),
        make_response(None, types.FinishReason.SAFETY),
        types.GenerateContentResponse(candidates=[]),
        types.GenerateContentResponse(),
    ],
)
def test_extract_text_falls_back(response):
    assert extract_text(response, fallback="fallback") == "fallback"


async def test_generate_passes_model_and_parameters():
    client, models = fake_client(make_response("ok"))
    service = GeminiService(Settings(gemini_api_key="k", gemini_model="gemini-test"), client=client)

    response = await service.generate([user_turn("hi")], temperature=0.3, max_output_tokens=300)

    assert extract_text(response, None) == "ok"
    request = models.requests[0]
    assert request["model"] == "gemini-test"
    assert request["config"].temperature == 0.3
    assert request["config"].max_output_tokens == 300


async def test_api_error_becomes_provider_error():
    api_error = errors.ClientError(400, {"error": {"code": 400, "message": "API key not valid", "status": "INVALID_ARGUMENT"}})
    client, _ = fake_client(api_error)
    service = GeminiService(Settings(gemini_api_key="k"), client=client)

    with pytest.raises(ProviderError) as exc_info:
        await service.generate([user_turn("hi")], temperature=0.7, max_output_tokens=10)

    assert exc_info.value.status_code == 400
    assert "API key not valid" in str(exc_info.value)


async def test_transport_error_becomes_provider_error():
    client, _ = fake_client(TimeoutError("read timed out"))
    service = GeminiService(Settings(gemini_api_key="k"), client=client)

    with pytest.raises(ProviderError) as exc_info:
        await service.generate([user_turn("hi")], temperature=0.7, max_output_tokens=10)

    assert exc_info.value.status_code is None
    assert exc_info.value.retryable


async def test_retries_server_errors_when_enabled():
    overloaded = errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
    client, models = fake_client(overloaded, make_response("second time lucky"))
    service = GeminiService(Settings(gemini_api_key="k", provider_max_retries=2), client=client)

    response = await service.generate([user_turn("hi")], temperature=0.7, max_output_tokens=10)

    assert extract_text(response, None) == "second time lucky"
    assert len(models.requests) == 2


async def test_single_attempt_by_default():
    overloaded = errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
    client, models = fake_client(overloaded, make_response("never reached"))
    service = GeminiService(Settings(gemini_api_key="k"), client=client)

    with pytest.raises(ProviderError):
        await service.generate([user_turn("hi")], temperature=0.7, max_output_tokens=10)
    assert len(models.requests) == 1


async def test_client_errors_are_not_retried():
    bad_request = errors.ClientError(400, {"error": {"code": 400, "message": "bad", "status": "INVALID_ARGUMENT"}})
    client, models = fake_client(bad_request, make_response("never reached"))
    service = GeminiService(Settings(gemini_api_key="k", provider_max_retries=3), client=client)

    with pytest.raises(ProviderError):
        await service.generate([user_turn("hi")], temperature=0.7, max_output_tokens=10)
    assert len(models.requests) == 1


async def test_missing_key_fails_without_request():
    service = GeminiService(Settings(gemini_api_key=""))
    with pytest.raises(ProviderError) as exc_info:
        await service.generate([user_turn("hi")], temperature=0.7, max_output_tokens=10)
    assert "GEMINI_API_KEY" in str(exc_info.value)


def test_client_built_with_timeout_in_milliseconds(monkeypatch):
    built = []

    def record_client(**kwargs):
        built.append(kwargs)
        return SimpleNamespace()

    monkeypatch.setattr("mindtrack.services.gemini_service.genai.Client", record_client)
    service = GeminiService(Settings(gemini_api_key="k", provider_timeout_seconds=7))

    client = service.client

    assert service.client is client
    assert len(built) == 1
    assert built[0]["api_key"] == "k"
    assert built[0]["http_options"].timeout == 7000
