"""Runtime infrastructure for billsplit.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Parser configuration loading via load_parser_config()

Usage:
    from billsplit.runtime import get_logger, load_parser_config

    logger = get_logger(__name__)
    config = load_parser_config()
"""

from billsplit.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from billsplit.runtime.parser_config import CONFIG_ENV_VAR, load_parser_config

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Config
    "load_parser_config",
    "CONFIG_ENV_VAR",
]
