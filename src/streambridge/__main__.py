"""Run the bridge: python -m streambridge"""

from __future__ import annotations

import logging
import sys

import uvicorn

from .app import create_app
from .config import Config, ConfigError
from .log import setup_logging

logger = logging.getLogger("streambridge")


def main() -> int:
    try:
        cfg = Config.from_env()
    except ConfigError as exc:
        # fatal before the listener binds
        setup_logging()
        logger.error("cannot start bridge: %s", exc)
        return 1

    setup_logging(cfg.log_level)
    app = create_app(cfg)
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
