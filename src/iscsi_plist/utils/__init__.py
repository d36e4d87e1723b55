"""Utility modules for logging and retry handling."""
from .logging_config import (
    setup_logging,
    timed,
    perf_logger,
)
from .retry import with_retry, RETRYABLE_EXCEPTIONS

__all__ = [
    "setup_logging",
    "timed",
    "perf_logger",
    "with_retry",
    "RETRYABLE_EXCEPTIONS",
]
