import pytest

from config import DEFAULT_MODEL, MissingCredentials, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY", "GEMINI_MODEL", "MATCH_TEMPERATURE", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.api_key is None
    assert settings.model == DEFAULT_MODEL
    assert settings.match_temperature == 0.1
    assert settings.log_level == "INFO"


def test_key_precedence(monkeypatch):
    monkeypatch.setenv("API_KEY", "generic")
    assert Settings.from_env().api_key == "generic"
    monkeypatch.setenv("GOOGLE_API_KEY", "google")
    assert Settings.from_env().api_key == "google"
    monkeypatch.setenv("GEMINI_API_KEY", "gemini")
    assert Settings.from_env().api_key == "gemini"


def test_blank_key_is_missing(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "   ")
    settings = Settings.from_env()
    with pytest.raises(MissingCredentials):
        settings.require_api_key()


def test_overrides(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.5-pro")
    monkeypatch.setenv("MATCH_TEMPERATURE", "0.3")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.require_api_key() == "k"
    assert settings.model == "gemini-2.5-pro"
    assert settings.match_temperature == 0.3
    assert settings.log_level == "DEBUG"
