"""Logging helpers shared by the memory layer."""

import functools
import inspect
import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional


_EXTRA_FIELDS = ("agent_id", "function", "details", "duration_ms", "key", "path")


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = "logs",
    log_file_name: Optional[str] = None,
) -> logging.Logger:
    """Set up logging for the memory layer.

    Console output always; a JSON-lines file under ``log_dir`` unless
    ``log_dir`` is None (useful on hosts without a writable workspace).

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory to store log files, or None for console only
        log_file_name: Optional custom log file name. If None, uses timestamp.

    Returns:
        The configured ``pocket_memory`` logger
    """
    logger = logging.getLogger("pocket_memory")
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    ))
    logger.addHandler(console_handler)

    log_file_path = None
    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        if log_file_name is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file_name = f"pocket_memory_{timestamp}.log"
        log_file_path = log_path / log_file_name

        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logger.info("Logging initialized", extra={
        "details": {"log_file": str(log_file_path) if log_file_path else None, "log_level": log_level},
    })
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name (typically __name__)."""
    return logging.getLogger(name)


def log_call(logger: logging.Logger, agent_id: Optional[str] = None):
    """Decorator to log function calls with timing information at DEBUG.

    Args:
        logger: Logger instance to use
        agent_id: Optional agent ID for context
    """
    def decorator(func):
        func_name = func.__name__

        def _done(start_time: float) -> None:
            logger.debug(f"{func_name} completed", extra={
                "agent_id": agent_id,
                "function": func_name,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            })

        def _failed(start_time: float) -> None:
            logger.debug(f"{func_name} failed", extra={
                "agent_id": agent_id,
                "function": func_name,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            }, exc_info=True)

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = await func(*args, **kwargs)
            except Exception:
                _failed(start_time)
                raise
            _done(start_time)
            return result

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception:
                _failed(start_time)
                raise
            _done(start_time)
            return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
