"""Logging configuration for the ``token_tax`` package.

Library modules only call ``get_logger(__name__)``; the application entry
point calls ``configure_logging`` once at startup.
"""
import logging
import sys
from typing import Union

_PKG_LOGGER_NAME = "token_tax"
_CONFIGURED = False


def _parse_level(level: Union[int, str, None]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(level: Union[int, str, None] = None) -> None:
    """Attach a single stream handler to the package logger, once."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger, keeping the package silent until configured."""
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
