"""Custom exceptions for SignInGuard.

Provides a hierarchy of exceptions for different error types.
All SignInGuard exceptions inherit from SignInGuardException.
"""

from typing import Any, Dict, Optional


class SignInGuardException(Exception):
    """Base exception for all SignInGuard errors.
    
    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """
    
    def __init__(
        self,
        message: str,
        code: str = "SIGNIN_GUARD_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(SignInGuardException):
    """Raised when configuration or a rules file is invalid or missing."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIG_ERROR", details=details)


class ValidationError(SignInGuardException):
    """Raised when input validation fails."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class RuleStoreError(SignInGuardException):
    """Raised when rules cannot be read from the rule store."""
    
    def __init__(
        self,
        message: str,
        store_name: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["store_name"] = store_name
        super().__init__(message, code="RULE_STORE_ERROR", details=details)


class ActivityStoreError(SignInGuardException):
    """Raised when an activity-log query fails."""
    
    def __init__(
        self,
        message: str,
        query: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["query"] = query
        super().__init__(message, code="ACTIVITY_STORE_ERROR", details=details)
