import pytest

from streambridge import create_app
from streambridge.config import DEFAULT_YOUTUBE_CLIENT_ID, Config, ConfigError


def test_missing_secret_is_fatal(monkeypatch):
    monkeypatch.delenv("YOUTUBE_CLIENT_SECRET", raising=False)
    with pytest.raises(ConfigError):
        Config.from_env()
    # the app cannot be built either, so the listener never binds
    with pytest.raises(ConfigError):
        create_app()


def test_from_env_defaults(monkeypatch):
    monkeypatch.setenv("YOUTUBE_CLIENT_SECRET", "abc")
    monkeypatch.delenv("YOUTUBE_CLIENT_ID", raising=False)
    monkeypatch.delenv("TWITCH_EVENTSUB_SECRET", raising=False)
    monkeypatch.delenv("STREAMBRIDGE_LOG_LEVEL", raising=False)

    cfg = Config.from_env()
    assert cfg.client_secret == "abc"
    assert cfg.client_id == DEFAULT_YOUTUBE_CLIENT_ID
    assert cfg.eventsub_secret is None
    assert cfg.log_level == "INFO"
    assert (cfg.host, cfg.port) == ("127.0.0.1", 3000)
    assert cfg.redirect_uri == "http://localhost:3000/callback"
    assert cfg.topic_capacity == 32


def test_from_env_overrides(monkeypatch):
    monkeypatch.setenv("YOUTUBE_CLIENT_SECRET", "abc")
    monkeypatch.setenv("YOUTUBE_CLIENT_ID", "my-client")
    monkeypatch.setenv("TWITCH_EVENTSUB_SECRET", "hook-secret")
    monkeypatch.setenv("STREAMBRIDGE_LOG_LEVEL", "debug")

    cfg = Config.from_env()
    assert cfg.client_id == "my-client"
    assert cfg.eventsub_secret == "hook-secret"
    assert cfg.log_level == "DEBUG"
