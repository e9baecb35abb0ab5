"""Common utilities - logging, config, exceptions."""

from signin_guard.common.logging import get_logger
from signin_guard.common.config import Config, get_config, reset_config
from signin_guard.common.exceptions import (
    SignInGuardException,
    ConfigurationError,
    ValidationError,
    RuleStoreError,
    ActivityStoreError,
)

__all__ = [
    # Logging
    "get_logger",
    # Config
    "Config",
    "get_config",
    "reset_config",
    # Exceptions
    "SignInGuardException",
    "ConfigurationError",
    "ValidationError",
    "RuleStoreError",
    "ActivityStoreError",
]
