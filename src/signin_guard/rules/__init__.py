"""Rules - contextual authentication rules evaluation.

Components:
- RulesEngine: Evaluates enabled rules in priority order (fails open)
- ConditionEvaluator: Field comparisons and AND/OR groups
- SignalChecker: Velocity signals over the activity log
- apply_action / apply_actions: Pure decision transitions
- Schemas: Rules, contexts and results
"""

from signin_guard.rules.schemas import (
    Action,
    ActionType,
    AppliedRule,
    AuthContext,
    Condition,
    ConditionGroup,
    ConditionOperator,
    EvaluationOutcome,
    EvaluationResult,
    GroupOperator,
    Rule,
    SignalField,
)
from signin_guard.rules.actions import DecisionState, apply_action, apply_actions
from signin_guard.rules.conditions import ConditionEvaluator, is_ip_in_range
from signin_guard.rules.signals import SignalChecker
from signin_guard.rules.engine import RulesEngine
from signin_guard.rules.availability import (
    AvailableMethods,
    RegisteredMethod,
    filter_available_methods,
)

__all__ = [
    # Core components
    "RulesEngine",
    "ConditionEvaluator",
    "SignalChecker",
    "DecisionState",
    "apply_action",
    "apply_actions",
    "is_ip_in_range",
    "filter_available_methods",
    # Schemas
    "Action",
    "ActionType",
    "AppliedRule",
    "AuthContext",
    "AvailableMethods",
    "Condition",
    "ConditionGroup",
    "ConditionOperator",
    "EvaluationOutcome",
    "EvaluationResult",
    "GroupOperator",
    "RegisteredMethod",
    "Rule",
    "SignalField",
]
