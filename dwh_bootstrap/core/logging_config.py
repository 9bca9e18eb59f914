"""
Logging Configuration Module.

This module provides centralized logging configuration for the provisioner.
It sets up console logging, optional file logging and quieter levels for
third-party libraries.

Features:
- Configurable log level and format (simple, detailed, json)
- Console and optional file logging
- Module-specific log levels
"""

import logging
import os
from pathlib import Path
from typing import Optional


def _get_logging_config():
    """Get logging configuration from settings model.

    This function is used to defer settings import until needed,
    avoiding circular imports during module initialization.
    """
    try:
        from dwh_bootstrap.core.config import get_settings

        settings = get_settings()

        return {
            "log_level": settings.logging.level.upper(),
            "log_format": settings.logging.format,
            "log_file_dir": settings.logging.file_dir,
            "enable_file_logging": settings.logging.enable_file,
        }
    except Exception:
        # Fallback to environment variables if settings are invalid
        return {
            "log_level": os.getenv("DWH_LOG_LEVEL", "INFO").upper(),
            "log_format": os.getenv("DWH_LOG_FORMAT", "detailed"),
            "log_file_dir": os.getenv("DWH_LOG_FILE_DIR", "logs"),
            "enable_file_logging": os.getenv("DWH_ENABLE_FILE_LOGGING", "false").lower() in ("true", "1", "yes"),
        }


_config = _get_logging_config()
LOG_LEVEL = _config["log_level"]
LOG_FORMAT = _config["log_format"]
LOG_FILE_DIR = _config["log_file_dir"]
ENABLE_FILE_LOGGING = _config["enable_file_logging"]


# Define log formats
SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

FORMATS = {
    "simple": SIMPLE_FORMAT,
    "detailed": DETAILED_FORMAT,
    "json": JSON_FORMAT,
}


# Module-specific log levels
MODULE_LOG_LEVELS = {
    "dwh_bootstrap": "DEBUG",
    "dwh_bootstrap.provisioner": "DEBUG",
    "dwh_bootstrap.server": "DEBUG",
    # Third-party libraries (reduce noise)
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "asyncio": "WARNING",
}


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: Optional[bool] = None,
    log_dir: Optional[str] = None,
) -> None:
    """
    Configure logging for the provisioner.

    Args:
        log_level: Override default log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override default format (simple, detailed, json)
        enable_file: Override whether to also write ``dwh_bootstrap.log`` into the log directory
        log_dir: Override the directory the log file is written to
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT
    to_file = ENABLE_FILE_LOGGING if enable_file is None else enable_file
    directory = Path(log_dir or LOG_FILE_DIR)

    formatter = logging.Formatter(FORMATS.get(fmt, DETAILED_FORMAT), datefmt="%Y-%m-%d %H:%M:%S")

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all levels, filter at handler level

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if to_file:
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / "dwh_bootstrap.log")
        file_handler.setLevel(logging.DEBUG)  # Always log DEBUG to file
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.debug(f"Logging configured: level={level}, format={fmt}, file_logging={to_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)
