"""SignInGuard - Contextual authentication rules engine."""

__version__ = "0.1.0"
__author__ = "SignInGuard Team"

# Core exports
from signin_guard.rules.engine import RulesEngine
from signin_guard.rules.schemas import (
    AuthContext,
    EvaluationOutcome,
    EvaluationResult,
    Rule,
)

__all__ = [
    "RulesEngine",
    "AuthContext",
    "EvaluationOutcome",
    "EvaluationResult",
    "Rule",
]
