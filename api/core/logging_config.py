"""
Process-wide logging setup.

Modules log through `logging.getLogger(__name__)` using `event key=value`
messages; this only decides level and format for the root logger.
"""

from __future__ import annotations

import logging

from . import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def configure_logging() -> None:
    global _configured
    if _configured:
        return None

    level = getattr(logging, settings.log_level(), logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # asyncpg and httpx are chatty at DEBUG; keep them at WARNING unless asked.
    for name in ("asyncpg", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _configured = True
