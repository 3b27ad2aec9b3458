# src/sitedash/app_logger.py
"""
Package logging. Everything under the ``sitedash`` logger goes to one console
handler; the level comes from ``Settings.log_level`` (``SITEDASH_LOG_LEVEL``,
environment or ``.env``) unless the caller passes one.
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from sitedash.settings import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
PACKAGE_LOGGER = "sitedash"


def _to_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(_to_level(level if level is not None else get_settings().log_level))

    # One console handler, even when called again to change the level
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(ch)

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = logging.getLogger(PACKAGE_LOGGER)
    return base.getChild(name) if name else base


logger = setup_logging()
