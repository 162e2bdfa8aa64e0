"""Tests for settings loading."""

from chatstream.config import Settings


def test_heading_prefix():
    assert Settings(heading_level=0).heading_prefix == ""
    assert Settings(heading_level=3).heading_prefix == "### "


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CHATSTREAM_MODEL", "gpt-env")
    monkeypatch.setenv("CHATSTREAM_SET_AT_CURSOR", "true")
    settings = Settings()
    assert settings.model == "gpt-env"
    assert settings.set_at_cursor is True


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.url.endswith("/chat/completions")
    assert settings.provider_timeout == 60
