"""Logging setup and per-video log context."""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

from ytchat.config import get_settings

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "playwright", "asyncio")


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once at startup.

    Args:
        level: Override log level. Defaults to ``LOG_LEVEL`` when set,
            otherwise INFO in production and DEBUG elsewhere.
    """
    settings = get_settings()
    level = (level or settings.log_level or ("INFO" if settings.is_production else "DEBUG")).upper()

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically ``__name__``)."""
    return logging.getLogger(name)


class LogContext(logging.LoggerAdapter):
    """Prefixes every message with ``[key=value]`` pairs.

    Usage:
        log = LogContext(logger, video="dQw4w9WgXcQ")
        log.info("Polled 12 messages")  # "[video=dQw4w9WgXcQ] Polled 12 messages"
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        super().__init__(logger, context)
        self.prefix = " ".join(f"[{k}={v}]" for k, v in context.items())

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"{self.prefix} {msg}", kwargs
