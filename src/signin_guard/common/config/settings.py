"""Configuration management - Centralized configuration for SignInGuard.

Provides environment-aware configuration with sensible defaults.
All configuration is loaded from environment variables with fallbacks.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from signin_guard.common.exceptions import ConfigurationError


# Methods offered when the user has no registered methods
DEFAULT_AUTH_METHODS: Tuple[str, ...] = ("passkey", "digitalid", "email_otp", "sms_otp")


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _parse_enum(enum_cls, env_var: str, default: str):
    raw = os.getenv(env_var, default)
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            f"{env_var} must be one of: {allowed}",
            details={"env_var": env_var, "value": raw},
        )


def _parse_methods() -> List[str]:
    raw = os.getenv("SIGNIN_GUARD_DEFAULT_AUTH_METHODS")
    if raw is None:
        return list(DEFAULT_AUTH_METHODS)
    return [method.strip() for method in raw.split(",") if method.strip()]


@dataclass
class Config:
    """Central configuration object for SignInGuard.
    
    All settings can be overridden via environment variables prefixed with
    SIGNIN_GUARD_.
    
    Example:
        SIGNIN_GUARD_ENVIRONMENT=production
        SIGNIN_GUARD_LOG_LEVEL=INFO
        SIGNIN_GUARD_RULES_FILE=/etc/signin-guard/auth_rules.yaml
        SIGNIN_GUARD_DEFAULT_AUTH_METHODS=passkey,email_otp
    """
    
    # Core settings
    environment: Environment = field(
        default_factory=lambda: _parse_enum(
            Environment, "SIGNIN_GUARD_ENVIRONMENT", "development"
        )
    )
    debug: bool = field(
        default_factory=lambda: os.getenv("SIGNIN_GUARD_DEBUG", "false").lower() == "true"
    )
    log_level: LogLevel = field(
        default_factory=lambda: _parse_enum(LogLevel, "SIGNIN_GUARD_LOG_LEVEL", "INFO")
    )
    
    # Rules settings
    rules_file: Path = field(
        default_factory=lambda: Path(
            os.getenv("SIGNIN_GUARD_RULES_FILE", "./config/auth_rules.yaml")
        )
    )
    default_auth_methods: List[str] = field(default_factory=_parse_methods)
    
    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.default_auth_methods:
            raise ConfigurationError(
                "SIGNIN_GUARD_DEFAULT_AUTH_METHODS must name at least one method"
            )
        
        # Warn about debug in production
        if self.environment == Environment.PRODUCTION and self.debug:
            import warnings
            warnings.warn(
                "Debug mode is enabled in production environment",
                RuntimeWarning,
                stacklevel=2
            )


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.
    
    Returns:
        Config: The global configuration singleton.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
