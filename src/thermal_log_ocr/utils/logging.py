# ============================================================================
# src/thermal_log_ocr/utils/logging.py
# ============================================================================
"""
Logging configuration and utilities for the thermal log OCR engine.

Library modules only create loggers; applications call setup_logging()
(or setup_logging_from_settings()) once at startup.
"""

import logging
import sys
import time
import functools
from pathlib import Path
from typing import Optional, Union
from datetime import datetime, timezone
import json

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Record attributes LogAdapter may attach
CONTEXT_KEYS = ('target_hour', 'field_name')


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    format_json: bool = False
) -> None:
    """
    Configure the root logger for parser output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file to log to as well as stdout
        format_json: Emit one JSON object per line
    """
    formatter = JsonFormatter() if format_json else logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=handlers,
        force=True
    )


def setup_logging_from_settings() -> None:
    """Configure logging from the global logging settings."""
    from ..config import logging_settings

    setup_logging(
        level=logging_settings.LOG_LEVEL,
        log_file=logging_settings.LOG_FILE,
        format_json=logging_settings.LOG_FORMAT_JSON,
    )


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with parse context when attached."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        for key in CONTEXT_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module (pass __name__)."""
    return logging.getLogger(name)


class LogAdapter(logging.LoggerAdapter):
    """
    Attaches parse context (target hour, field) to every record.

    Caller-supplied extra keys win over the adapter's context.
    """

    def process(self, msg, kwargs):
        kwargs['extra'] = {**self.extra, **kwargs.get('extra', {})}
        return msg, kwargs


def log_performance(logger: logging.Logger, operation: str):
    """
    Decorator logging how long an operation took.

    Failures are logged with their duration and re-raised.

    Args:
        logger: Logger to report to
        operation: Name used in the log message
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{operation} failed after {time.perf_counter() - started:.3f}s: {e}")
                raise
            logger.info(f"{operation} completed in {time.perf_counter() - started:.3f}s")
            return result

        return wrapper
    return decorator
