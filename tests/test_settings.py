"""Tests for environment based settings."""

import pytest

from storycast.api.settings import DEFAULT_ALLOWED_ORIGINS, Settings

ENV_VARS = [
    "ENV",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "ELEVENLABS_API_KEY",
    "ELEVEN_LABS_API_KEY",
    "ELEVEN_API_KEY",
    "ELEVENLABS_VOICE_ID",
    "TTS_PROVIDER",
    "FRONTEND_URL",
    "ALLOWED_ORIGINS",
    "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.env == "dev"
    assert settings.port == 4040
    assert settings.elevenlabs_voice_id == "jUjRbhZWoMK4aDciW36V"
    assert settings.default_voice_id == "jUjRbhZWoMK4aDciW36V"
    assert settings.origin_allow_list == DEFAULT_ALLOWED_ORIGINS.split(",")
    assert settings.expose_error_details


def test_reads_credentials_from_environment(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "g-key")
    monkeypatch.setenv("ELEVENLABS_API_KEY", "e-key")
    monkeypatch.setenv("ELEVENLABS_VOICE_ID", "voice-x")
    monkeypatch.setenv("PORT", "8080")

    settings = Settings(_env_file=None)

    assert settings.gemini_api_key == "g-key"
    assert settings.eleven_labs_api_key == "e-key"
    assert settings.default_voice_id == "voice-x"
    assert settings.port == 8080


def test_frontend_url_joins_allow_list(monkeypatch):
    monkeypatch.setenv("FRONTEND_URL", "https://stories.example")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000, ,https://stories.example")

    settings = Settings(_env_file=None)

    assert settings.origin_allow_list == ["https://stories.example", "http://localhost:3000"]


def test_openai_voice_when_openai_selected(monkeypatch):
    monkeypatch.setenv("TTS_PROVIDER", "openai")
    monkeypatch.setenv("ENV", "production")

    settings = Settings(_env_file=None)

    assert settings.default_voice_id == "alloy"
    assert not settings.expose_error_details
