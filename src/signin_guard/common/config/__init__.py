"""Configuration module - Centralized config management."""

from signin_guard.common.config.settings import (
    Config,
    Environment,
    LogLevel,
    DEFAULT_AUTH_METHODS,
    get_config,
    reset_config,
)

__all__ = [
    "Config",
    "Environment",
    "LogLevel",
    "DEFAULT_AUTH_METHODS",
    "get_config",
    "reset_config",
]
