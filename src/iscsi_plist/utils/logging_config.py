"""Logging configuration for the iSCSI property list store.

Provides configurable logging with:
- Console and rotating file handlers on the "iscsi_plist" logger
- Keyring backend warnings routed to the same handlers
- A timing decorator for synchronize and flush operations

Environment Variables:
    ISCSI_PLIST_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    ISCSI_PLIST_LOG_FILE: Path to log file (default: ~/.iscsi-plist/iscsi-plist.log)
    ISCSI_PLIST_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    ISCSI_PLIST_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from iscsi_plist.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup, or setup_logging("DEBUG", log_file)

    @timed("synchronize")
    def synchronize(self):
        ...
"""
import functools
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Optional

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("iscsi_plist.perf")
main_logger = logging.getLogger("iscsi_plist")

# Keyring backends log their own failures under this name
keyring_logger = logging.getLogger("keyring")


def get_log_level(level: Optional[str] = None) -> int:
    """Resolve a level name, falling back to ISCSI_PLIST_LOG_LEVEL and INFO."""
    level_str = (level or os.environ.get("ISCSI_PLIST_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file(log_file: Optional[Path] = None) -> Path:
    if log_file is not None:
        return Path(log_file)
    default_path = Path.home() / ".iscsi-plist" / "iscsi-plist.log"
    return Path(os.environ.get("ISCSI_PLIST_LOG_FILE", str(default_path)))


def _replace_handlers(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        logger.addHandler(handler)


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> Path:
    """Configure logging for the application.

    Args:
        level: Console level name (default: ISCSI_PLIST_LOG_LEVEL or INFO)
        log_file: Log file path (default: ISCSI_PLIST_LOG_FILE)

    Sets up a console handler at the requested level and a rotating file
    handler at DEBUG on the "iscsi_plist" logger. Keyring warnings go to the
    same handlers so vault failures show up next to the cache's own records.
    Calling it again replaces the handlers of the previous call.

    Returns:
        Path of the log file
    """
    log_level = get_log_level(level)
    log_file = get_log_file(log_file)
    max_size_mb = int(os.environ.get("ISCSI_PLIST_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("ISCSI_PLIST_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-32s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    handlers = [console_handler, file_handler]
    _replace_handlers(main_logger, handlers)
    main_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter

    _replace_handlers(keyring_logger, handlers)
    keyring_logger.setLevel(logging.WARNING)

    main_logger.info(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")
    return log_file


def timed(operation: str, scope: Optional[str] = None):
    """Decorator to log execution time of a function.

    Args:
        operation: Name of the operation (e.g., "synchronize", "store_flush")
        scope: Optional label (inferred from self.app_id when omitted)

    Usage:
        @timed("synchronize")
        def synchronize(self):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            label = scope
            if label is None and args and hasattr(args[0], "app_id"):
                label = args[0].app_id

            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000  # ms
                perf_logger.info(
                    f"{operation:20s} | {label or 'N/A':20s} | {elapsed:8.2f}ms | OK"
                )
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(
                    f"{operation:20s} | {label or 'N/A':20s} | {elapsed:8.2f}ms | FAIL: {e}"
                )
                raise

        return wrapper

    return decorator
