"""Check the configured YouTube OAuth client against Google's token endpoint.

Usage:
  YOUTUBE_CLIENT_SECRET=... YOUTUBE_REFRESH_TOKEN=... python scripts/check_youtube_refresh.py
"""

import asyncio
import os

from streambridge.config import Config, ConfigError
from streambridge.identity import ExchangeError, IdentityClient


async def main():
    print("Checking environment variables...")
    print("YOUTUBE_CLIENT_ID present:", bool(os.getenv("YOUTUBE_CLIENT_ID")))
    print("YOUTUBE_CLIENT_SECRET present:", bool(os.getenv("YOUTUBE_CLIENT_SECRET")))

    try:
        cfg = Config.from_env()
    except ConfigError as exc:
        print("Configuration invalid:", exc)
        return

    refresh_token = os.getenv("YOUTUBE_REFRESH_TOKEN")
    if not refresh_token:
        print("Set YOUTUBE_REFRESH_TOKEN to test a refresh exchange")
        return

    client = IdentityClient.from_config(cfg)
    try:
        grant = await client.refresh(refresh_token)
    except ExchangeError as exc:
        print(f"Refresh failed ({exc.kind}):", exc)
        return

    print("Refresh succeeded: expires_in=", grant.expires_in, "scope=", grant.scope)


if __name__ == "__main__":
    asyncio.run(main())
