"""Utility modules for configuration, logging, and error handling."""

from .config import (
    AppConfig,
    get_config,
    load_config,
    reset_config,
    validate_provider_credentials,
)
from .logger import (
    configure_logging,
    get_logger,
    log_execution_time,
    set_log_level,
    log_exception,
)

__all__ = [
    # Configuration
    "AppConfig",
    "get_config",
    "load_config",
    "reset_config",
    "validate_provider_credentials",
    # Logging
    "configure_logging",
    "get_logger",
    "log_execution_time",
    "set_log_level",
    "log_exception",
]
