from __future__ import annotations

import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the bridge process.

    uvicorn installs its own handlers before the app starts, so the root
    logger is reconfigured with force=True.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    # every webhook delivery would otherwise produce an access line
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
