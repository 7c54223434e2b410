"""
Central logging configuration for zonedate.

Sets up a colorized console handler when the host application has not
configured logging itself, and tunes the level of the zonedate loggers.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

DEBUG_ENV = "ZONEDATE_DEBUG"
LOG_LEVEL_ENV = "ZONEDATE_LOG_LEVEL"

# HH:MM:SS  LEVEL   logger.name: message (only the level is colorized)
LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

ZONEDATE_MODULES = [
    "zonedate",
    "zonedate.factory",
    "zonedate.registry",
    "zonedate.context",
    "zonedate.engine",
    "zonedate.settings",
]


def _env_debug() -> bool:
    return os.getenv(DEBUG_ENV, "").strip().lower() in ("1", "true", "yes", "on")


def _create_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
    return handler


def configure_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure console logging and zonedate logger levels.

    Args:
        debug_mode: Whether to enable debug logging for zonedate modules
        force_debug: Override debug mode setting (None to use env var detection)
        log_level: Root log level from configuration; beats ZONEDATE_LOG_LEVEL

    Environment Variables:
        ZONEDATE_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        ZONEDATE_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    if force_debug is not None:
        final_debug = force_debug
    elif _env_debug():
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    requested_level = (log_level or os.getenv(LOG_LEVEL_ENV, "")).strip().upper()
    if requested_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, requested_level)

    # Don't use force=True: an application's own handlers stay in place
    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)
    if not root_logger.handlers:
        root_logger.addHandler(_create_handler(root_level))

    module_level = logging.DEBUG if final_debug else logging.INFO
    for module in ZONEDATE_MODULES:
        logging.getLogger(module).setLevel(module_level)

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s zonedate=%s",
        logging.getLevelName(root_level),
        logging.getLevelName(module_level),
    )


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ZONEDATE_MODULES:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
