"""Logging configuration for the Hollow Knight save editor."""

import logging
import sys
from typing import Optional

from .config import config


def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Set up logging configuration for the editor.

    Args:
        log_level: Override the log level from config
        log_file: Also write to this file (defaults to config.log_file)

    Returns:
        Configured logger instance
    """
    level = log_level or config.log_level
    log_file = log_file or config.log_file

    # Create formatter
    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Avoid stacking handlers when called more than once
    if not getattr(root_logger, "_hollowsave_configured", False):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        root_logger._hollowsave_configured = True

    app_logger = logging.getLogger("hollowsave")
    app_logger.setLevel(getattr(logging, level.upper()))

    return app_logger


# Initialize logger
log = setup_logging()
