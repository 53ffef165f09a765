"""Logging setup for the perkyjobs backend.

Library modules log under ``perkyjobs.*`` via ``logging.getLogger(__name__)``;
routes log under ``perkyjobs.api.*``. ``setup_logging`` attaches one stream
handler to the ``perkyjobs`` logger so both end up in the service output.
"""

import logging
import sys

LOGGER_NAMESPACE = "perkyjobs"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the perkyjobs logger. Safe to call more than once."""
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not any(getattr(h, "_perkyjobs", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._perkyjobs = True
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger, namespaced under perkyjobs if it is not already."""
    if not name.startswith(LOGGER_NAMESPACE):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)
