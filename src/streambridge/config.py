from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

# public OAuth client registered for the desktop app; the secret is not
DEFAULT_YOUTUBE_CLIENT_ID = (
    "311952405738-1cd4o0irnc5b7maihbm3f68qatns9764.apps.googleusercontent.com"
)


class ConfigError(RuntimeError):
    pass


@dataclass
class Config:
    """Centralized runtime configuration for the bridge.

    - client_id / client_secret: Google OAuth client used for the YouTube
      authorization-code exchange. The secret is mandatory.
    - eventsub_secret: Twitch EventSub transport secret. When unset, webhook
      signatures are not checked.
    - log_level: root logging level name.

    Listener address, redirect URI, token endpoint, topic capacity and the
    exchange timeout are fixed for the local deployment.
    """

    client_secret: str
    client_id: str = DEFAULT_YOUTUBE_CLIENT_ID
    eventsub_secret: Optional[str] = None
    log_level: str = "INFO"

    host: str = "127.0.0.1"
    port: int = 3000
    redirect_uri: str = "http://localhost:3000/callback"
    token_url: str = "https://oauth2.googleapis.com/token"
    exchange_timeout: float = 10.0
    topic_capacity: int = 32

    @classmethod
    def from_env(cls) -> "Config":
        secret = os.environ.get("YOUTUBE_CLIENT_SECRET", "").strip()
        if not secret:
            raise ConfigError("YOUTUBE_CLIENT_SECRET must be set")

        client_id = (
            os.environ.get("YOUTUBE_CLIENT_ID", "").strip() or DEFAULT_YOUTUBE_CLIENT_ID
        )
        eventsub_secret = os.environ.get("TWITCH_EVENTSUB_SECRET") or None
        log_level = (os.environ.get("STREAMBRIDGE_LOG_LEVEL") or "INFO").upper()
        return cls(
            client_secret=secret,
            client_id=client_id,
            eventsub_secret=eventsub_secret,
            log_level=log_level,
        )
