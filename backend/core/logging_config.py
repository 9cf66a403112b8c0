from __future__ import annotations

import logging
from typing import Iterable

DEV_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
PROD_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "aiosqlite", "asyncio")


def configure_logging(level="INFO", debug: bool = False) -> None:
    """Set up root logging once at application startup."""
    resolved = _coerce_level(level)
    root = logging.getLogger()
    root.setLevel(resolved)
    if not root.handlers:
        root.addHandler(logging.StreamHandler())

    if resolved > logging.DEBUG:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    formatter = logging.Formatter(DEV_FORMAT if debug else PROD_FORMAT)
    _apply_formatter(root.handlers, formatter)


def _apply_formatter(handlers: Iterable[logging.Handler], formatter: logging.Formatter) -> None:
    for handler in handlers:
        handler.setFormatter(formatter)


def _coerce_level(raw_level) -> int:
    if isinstance(raw_level, int):
        return raw_level
    if isinstance(raw_level, str):
        candidate = raw_level.strip().upper()
        value = getattr(logging, candidate, logging.INFO)
        return value if isinstance(value, int) else logging.INFO
    return logging.INFO
