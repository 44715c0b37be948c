"""
Logging setup.

Configures the "batchhub" logger hierarchy once at startup. Request
middleware and services log through child loggers of it.
"""

import logging
from batchhub.app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = None) -> logging.Logger:
    """Attach a stream handler to the root batchhub logger (idempotent)."""
    global _configured

    logger = logging.getLogger("batchhub")
    logger.setLevel((level or settings.log_level).upper())

    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True

    return logger
