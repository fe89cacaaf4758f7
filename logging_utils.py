from __future__ import annotations

import logging
from typing import Iterable

from rich.logging import RichHandler

LOGGER_NAMES = ("app", "admin", "articles")


def setup_logging(level: str, names: Iterable[str] = LOGGER_NAMES) -> None:
    """Send the blog's module loggers to a rich console handler."""
    handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=True)
    handler.setLevel(_level_from_string(level))
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    for name in names:
        logger = logging.getLogger(name)
        logger.setLevel(_level_from_string(level))
        logger.handlers = [handler]
        logger.propagate = False


def _level_from_string(level: str) -> int:
    return getattr(logging, (level or "").upper(), logging.INFO)
