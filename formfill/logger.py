"""
Logging setup for formfill.

Usage:
    from formfill.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Mapped %d/%d columns", mapped, total)
"""

import logging
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER_NAME = "formfill"

_root_configured = False


def _configure_root_logger() -> None:
    """Attach a stdout handler to the project logger, once."""
    global _root_configured
    if _root_configured:
        return

    from formfill.config import config

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT))

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(config.log_level)
    root_logger.addHandler(console_handler)
    root_logger.propagate = False

    _root_configured = True


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger under the formfill namespace.

    Args:
        name: usually the calling module's ``__name__``
        level: optional level override for this logger only
    """
    _configure_root_logger()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_level(level: Union[int, str], logger_name: Optional[str] = None) -> None:
    """
    Set the level of one logger, or of the whole project when no name is given.

    Example:
        set_level(logging.DEBUG)                          # everything
        set_level(logging.DEBUG, "formfill.services.form_filler")
    """
    logging.getLogger(logger_name or ROOT_LOGGER_NAME).setLevel(level)
