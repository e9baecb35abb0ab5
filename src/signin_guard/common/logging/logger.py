"""Centralized logging configuration."""

import logging
from typing import Optional


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a configured logger instance.

    When no level is given the configured ``log_level`` is used.
    """
    logger = logging.getLogger(name)

    if level is None:
        from signin_guard.common.config import get_config
        level = get_config().log_level.value
    logger.setLevel(getattr(logging, level))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
