"""
Central logging configuration for masstimes.

Keeps engine modules quiet at INFO in normal runs and lets DEBUG traces of
expansion and override reconciliation be switched on from the environment.
"""

import logging
import os
from typing import Optional

ENGINE_MODULES = (
    "masstimes",
    "masstimes.duration",
    "masstimes.timezone_utils",
    "masstimes.schedule_expander",
    "masstimes.event_filter",
    "masstimes.override_merger",
    "masstimes.resolver",
    "masstimes.config_loader",
    "masstimes.definitions_loader",
)

# Third-party loggers that are noisy at DEBUG
_QUIET_LOGGERS = ("yaml",)


def _env_debug() -> bool:
    return os.getenv("MASSTIMES_DEBUG", "").lower() in ("1", "true", "yes", "on")


def configure_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure logging levels for masstimes modules.

    Args:
        debug_mode: Whether to enable debug logging for masstimes modules
        force_debug: Override debug mode setting (None to use env var detection)
        log_level: Root level name from config; MASSTIMES_LOG_LEVEL takes precedence

    Environment Variables:
        MASSTIMES_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        MASSTIMES_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_log_level = os.getenv("MASSTIMES_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif _env_debug():
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    requested_level = env_log_level or (log_level or "").upper()
    if not final_debug and requested_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, requested_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Preserve a colorized handler installed by masstimes._init_logging
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(handler)

    for module in ENGINE_MODULES:
        logging.getLogger(module).setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if final_debug:
        root_logger.debug("Debug logging enabled for masstimes modules")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ENGINE_MODULES:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
