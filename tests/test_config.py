import pytest

from mindtrack.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "GEMINI_API_KEY",
        "GEMINI_MODEL",
        "GEMINI_TIMEOUT_SECONDS",
        "GEMINI_MAX_RETRIES",
        "STREAM_INTERVAL_MS",
        "CORS_ORIGINS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings.from_env()
    assert settings.gemini_api_key == ""
    assert not settings.provider_configured
    assert settings.gemini_model == "gemini-2.5-flash"
    assert settings.provider_timeout_seconds == 30.0
    assert settings.provider_max_retries == 1
    assert settings.stream_interval_seconds == pytest.approx(0.05)
    assert settings.cors_origins == ["*"]
    assert settings.log_level == "INFO"


def test_reads_environment(clean_env):
    clean_env.setenv("GEMINI_API_KEY", " secret ")
    clean_env.setenv("GEMINI_MODEL", "gemini-2.5-pro")
    clean_env.setenv("GEMINI_TIMEOUT_SECONDS", "12.5")
    clean_env.setenv("GEMINI_MAX_RETRIES", "3")
    clean_env.setenv("STREAM_INTERVAL_MS", "0")
    clean_env.setenv("CORS_ORIGINS", "http://localhost:3000, https://app.example")
    clean_env.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.gemini_api_key == "secret"
    assert settings.provider_configured
    assert settings.gemini_model == "gemini-2.5-pro"
    assert settings.provider_timeout_seconds == 12.5
    assert settings.provider_max_retries == 3
    assert settings.stream_interval_seconds == 0.0
    assert settings.cors_origins == ["http://localhost:3000", "https://app.example"]
    assert settings.log_level == "DEBUG"


def test_bad_and_out_of_range_values(clean_env):
    clean_env.setenv("GEMINI_TIMEOUT_SECONDS", "soon")
    clean_env.setenv("GEMINI_MAX_RETRIES", "99")

    settings = Settings.from_env()

    assert settings.provider_timeout_seconds == 30.0
    assert settings.provider_max_retries == 5


def test_settings_are_read_only():
    settings = Settings()
    with pytest.raises(Exception):
        settings.gemini_model = "other"
