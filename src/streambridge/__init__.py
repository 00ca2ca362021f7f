"""streambridge package.

Local bridge between streaming platforms and the desktop app: OAuth redirect
handling, token exchange, and webhook alerts fanned out over an event bus.

A local .env file is loaded on import (development convenience); real
deployments pass configuration through the environment.
"""

from typing import List

from dotenv import load_dotenv

load_dotenv()

from .app import create_app  # noqa: E402
from .config import Config, ConfigError  # noqa: E402
from .models import Alert, OAuthResult, TokenGrant  # noqa: E402

__all__: List[str] = [
    "Alert",
    "Config",
    "ConfigError",
    "OAuthResult",
    "TokenGrant",
    "create_app",
]
