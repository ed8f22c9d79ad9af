"""Startup configuration checks."""

import pytest

from app.config import settings
from app.dependencies import get_token_codec
from app.main import create_app


@pytest.fixture
def fresh_codec_cache():
    get_token_codec.cache_clear()
    yield
    get_token_codec.cache_clear()


def test_create_app_rejects_shared_secret(monkeypatch, fresh_codec_cache):
    monkeypatch.setattr(settings, "REFRESH_TOKEN_SECRET", settings.ACCESS_TOKEN_SECRET)
    with pytest.raises(ValueError):
        create_app()


def test_create_app_rejects_empty_secret(monkeypatch, fresh_codec_cache):
    monkeypatch.setattr(settings, "ACCESS_TOKEN_SECRET", "")
    with pytest.raises(ValueError):
        create_app()


def test_codec_uses_configured_secrets(fresh_codec_cache):
    codec = get_token_codec()
    assert codec.config.access_secret == settings.ACCESS_TOKEN_SECRET
    assert codec.config.refresh_secret == settings.REFRESH_TOKEN_SECRET
    assert get_token_codec() is codec
