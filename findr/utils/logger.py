"""Structured logging configuration for the Findr search pipeline.

This module provides colored console logging and optional rotating file
logging with timing utilities.
"""

import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import colorlog


# Default log format
CONSOLE_FORMAT_COLOR = "%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Directory for rotating log files, set by configure_logging()
_log_dir: Optional[Path] = None


def _resolve_level(level: Optional[str]) -> int:
    """Resolve a level name: explicit parameter > LOG_LEVEL env var > INFO."""
    if level is not None:
        log_level_str = level.upper()
    else:
        log_level_str = os.environ.get('LOG_LEVEL', 'INFO').upper()
    return getattr(logging, log_level_str, logging.INFO)


def _setup_console_handler(level: int) -> logging.Handler:
    """Create and configure a colored console handler.

    Args:
        level: Logging level

    Returns:
        Configured console handler
    """
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = colorlog.ColoredFormatter(
        CONSOLE_FORMAT_COLOR,
        datefmt=DATE_FORMAT,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    )

    console_handler.setFormatter(formatter)
    return console_handler


def _setup_file_handler(level: int, log_dir: Path) -> logging.Handler:
    """Create and configure rotating file handler.

    Args:
        level: Logging level
        log_dir: Directory for log files

    Returns:
        Configured rotating file handler
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / "findr.log"

    # Rotating file handler: max 10MB, keep 5 backup files
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(level)

    formatter = logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT)
    file_handler.setFormatter(formatter)

    return file_handler


def _get_log_dir(log_dir: Optional[Path]) -> Optional[Path]:
    if log_dir is not None:
        return Path(log_dir)
    if _log_dir is not None:
        return _log_dir
    env_dir = os.environ.get('FINDR_LOG_DIR')
    return Path(env_dir) if env_dir else None


def get_logger(name: str, log_dir: Optional[Path] = None, level: Optional[str] = None) -> logging.Logger:
    """Get or create a logger with a console handler and optional file handler.

    Args:
        name: Logger name (typically __name__ from calling module)
        log_dir: Directory for log files. If None, uses the directory set by
                 configure_logging() or the FINDR_LOG_DIR environment variable;
                 without either, only console logging is set up.
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
              If None, uses LOG_LEVEL environment variable, defaulting to INFO.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if logger has no handlers (avoid duplicate handlers)
    if not logger.handlers:
        log_level = _resolve_level(level)
        logger.setLevel(log_level)

        logger.addHandler(_setup_console_handler(log_level))

        resolved_dir = _get_log_dir(log_dir)
        if resolved_dir is not None:
            logger.addHandler(_setup_file_handler(log_level, resolved_dir))

        # Prevent propagation to root logger
        logger.propagate = False

    return logger


def configure_logging(level: Optional[str] = None, log_dir: Optional[Path] = None) -> None:
    """Set the log level and file directory for all Findr loggers.

    Loggers created afterwards pick up the new settings; existing
    ``findr.*`` loggers have their level updated in place and gain a
    rotating file handler when a directory is given.

    Args:
        level: Log level string. Pass config.log_level from AppConfig.
        log_dir: Directory for rotating log files (optional)
    """
    global _log_dir

    findr_loggers = [
        existing for name, existing in list(logging.Logger.manager.loggerDict.items())
        if name.startswith('findr') and isinstance(existing, logging.Logger)
    ]

    if log_dir is not None:
        _log_dir = Path(log_dir)
        for existing in findr_loggers:
            if not any(isinstance(h, RotatingFileHandler) for h in existing.handlers):
                existing.addHandler(_setup_file_handler(existing.level, _log_dir))

    if level is None:
        return

    os.environ['LOG_LEVEL'] = level.upper()
    for existing in findr_loggers:
        set_log_level(existing, level, announce=False)


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str):
    """Context manager to automatically log operation execution time.

    Args:
        logger: Logger instance
        operation: Name of the operation

    Usage:
        with log_execution_time(logger, "provider search"):
            # Your code here
            await scraper.search(criteria)
    """
    logger.debug(f"Starting: {operation}")
    start_time = time.time()

    try:
        yield
    finally:
        duration = time.time() - start_time
        logger.debug(f"Completed: {operation} in {duration:.3f}s")


def set_log_level(logger: logging.Logger, level: str, announce: bool = True) -> None:
    """Change the log level of a logger and all its handlers.

    Args:
        logger: Logger instance
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        announce: Log the change at INFO level
    """
    level_upper = level.upper()
    log_level = getattr(logging, level_upper, logging.INFO)

    logger.setLevel(log_level)
    for handler in logger.handlers:
        handler.setLevel(log_level)

    if announce:
        logger.info(f"Log level changed to {level_upper}")


def log_exception(logger: logging.Logger, operation: str, exception: Exception) -> None:
    """Log an exception with context.

    Args:
        logger: Logger instance
        operation: Name of the operation that failed
        exception: The exception that was raised
    """
    context = getattr(exception, "context", None)
    if context:
        logger.error(f"Failed: {operation} ({context})", exc_info=exception)
    else:
        logger.error(f"Failed: {operation}", exc_info=exception)
