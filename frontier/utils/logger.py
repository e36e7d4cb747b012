"""Logging configuration for Frontier Analyst."""

import logging
import sys


def setup_logger(name: str = "frontier", level: str | None = None) -> logging.Logger:
    """Create and configure a logger.

    When *level* is omitted the ``app.log_level`` setting is used.
    """
    if level is None:
        from frontier.config import SETTINGS
        level = SETTINGS.get("app", {}).get("log_level", "INFO")

    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-20s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
