"""Utility modules for the aggregator."""

from ytchat.utils.cache import TTLCache
from ytchat.utils.logging import get_logger, LogContext, setup_logging
from ytchat.utils.retry import retry_async, RetryConfig
from ytchat.utils.secrets import mask_secret

__all__ = [
    # Caching
    "TTLCache",
    # Logging
    "get_logger",
    "LogContext",
    "setup_logging",
    # Retry
    "retry_async",
    "RetryConfig",
    # Secrets
    "mask_secret",
]
