"""Tests for config module."""

import pytest

from cascade.config import DEFAULT_IMAGE_MODEL, DEFAULT_PLANNER_MODEL, Settings, load_settings
from cascade.errors import ConfigError

ENV_VARS = [
    "GEMINI_API_KEY",
    "API_KEY",
    "CASCADE_PLANNER_MODEL",
    "CASCADE_PROMPT_MODEL",
    "CASCADE_IMAGE_MODEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # setenv first so values written by load_dotenv are undone after the test
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # keep a stray ./.env out of the way
    monkeypatch.chdir(tmp_path)


def test_defaults_without_key():
    settings = load_settings()

    assert settings.api_key is None
    assert settings.planner_model == DEFAULT_PLANNER_MODEL
    assert settings.image_model == DEFAULT_IMAGE_MODEL


def test_require_api_key_raises_config_error():
    with pytest.raises(ConfigError, match="GEMINI_API_KEY"):
        Settings().require_api_key()


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", " secret ")
    monkeypatch.setenv("CASCADE_IMAGE_MODEL", "gemini-3-pro-image-preview")

    settings = load_settings()

    assert settings.require_api_key() == "secret"
    assert settings.image_model == "gemini-3-pro-image-preview"


def test_api_key_fallback(monkeypatch):
    monkeypatch.setenv("API_KEY", "fallback")

    assert load_settings().api_key == "fallback"


def test_env_file(tmp_path):
    env_file = tmp_path / "custom.env"
    env_file.write_text("GEMINI_API_KEY=from-file\nCASCADE_PLANNER_MODEL=gemini-2.5-flash\n")

    settings = load_settings(env_file)

    assert settings.api_key == "from-file"
    assert settings.planner_model == "gemini-2.5-flash"


def test_environment_wins_over_env_file(monkeypatch, tmp_path):
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    (tmp_path / ".env").write_text("GEMINI_API_KEY=from-file\n")

    assert load_settings().api_key == "from-env"
