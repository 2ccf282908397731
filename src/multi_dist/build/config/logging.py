"""
Centralized logging configuration.

bootstrap_logging() is called from every entry point (invoke tasks, the test
suite) to configure logging the same way everywhere, using Python's native
INI format when a logging.ini is present.
"""

import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import Optional

VALID_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
DEFAULT_FORMAT = '%(levelname)s: %(name)s: %(message)s'


def _find_logging_config() -> Optional[Path]:
    """
    Find the logging configuration file.

    Looks for logging.ini in the current working directory, then in .config/.

    Returns:
        Path to logging configuration file, or None if not found.
    """
    for candidate in (Path('logging.ini'), Path('.config/logging.ini')):
        if candidate.exists():
            return candidate
    return None


def _resolve_log_level() -> str:
    """
    Read LOG_LEVEL from the environment, defaulting to INFO.

    Sets LOG_LEVEL to the resolved value so that logging.ini can reference it.
    """
    log_level = os.environ.get('LOG_LEVEL', 'INFO').strip().upper()
    if log_level not in VALID_LEVELS:
        print(f"Warning: Invalid LOG_LEVEL '{log_level}', using INFO", file=sys.stderr)
        log_level = 'INFO'
    os.environ['LOG_LEVEL'] = log_level
    return log_level


def _basic_config(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format=DEFAULT_FORMAT,
        stream=sys.stderr
    )


def bootstrap_logging(name: Optional[str] = None) -> None:
    """
    Bootstrap logging configuration for the application.

    This function:
    1. Resolves LOG_LEVEL (default INFO)
    2. Loads logging.ini with logging.config.fileConfig() if one exists
    3. Applies LOG_LEVEL to the root logger and its stream handlers
    4. Falls back to logging.basicConfig() otherwise

    Args:
        name: Optional name for the logger that reports the configuration
    """
    level = _resolve_log_level()
    config_path = _find_logging_config()

    if config_path is None:
        _basic_config(level)
        return

    try:
        logging.config.fileConfig(
            str(config_path),
            disable_existing_loggers=False
        )
    except Exception as e:
        # A broken logging.ini must not stop the tool from running
        print(f"Warning: Failed to load logging config from {config_path}: {e}", file=sys.stderr)
        print("Using basic logging configuration", file=sys.stderr)
        _basic_config(level)
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level))
    for handler in root_logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setLevel(getattr(logging, level))

    logging.getLogger(name or 'multi_dist').debug(f"Logging configured from {config_path}")
