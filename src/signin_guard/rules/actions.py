"""Action application - pure transitions of an in-progress decision.

Each action maps a DecisionState to a new DecisionState. Nothing is mutated
in place, so a rule's action list is a simple fold.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Sequence, Tuple

from signin_guard.rules.schemas import Action, ActionType


DEFAULT_BLOCK_REASON = "Access denied by security rule"
NO_METHODS_REASON = "No allowed authentication methods available"


def _unique(methods: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for method in methods:
        if method not in seen:
            seen.append(method)
    return tuple(seen)


@dataclass(frozen=True)
class DecisionState:
    """Decision under construction.

    Method collections are ordered and free of duplicates.
    """
    allowed: bool
    allowed_methods: Tuple[str, ...]
    denied_methods: Tuple[str, ...] = ()
    block_reason: Optional[str] = None

    @classmethod
    def initial(cls, methods: Sequence[str]) -> "DecisionState":
        return cls(allowed=True, allowed_methods=_unique(methods))

    def block(self, reason: str) -> "DecisionState":
        return replace(self, allowed=False, allowed_methods=(), block_reason=reason)


def _is_method_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(m, str) for m in value)


def apply_action(
    state: DecisionState,
    action: Action,
    logger: Optional[logging.Logger] = None,
) -> DecisionState:
    """Apply one action.

    Unknown types and actions missing their required field are no-ops.
    """
    try:
        action_type = ActionType(action.type)
    except ValueError:
        if logger is not None:
            logger.warning(f"Unknown action type {action.type!r}, ignoring")
        return state

    if action_type == ActionType.BLOCK_ACCESS:
        return state.block(action.reason or DEFAULT_BLOCK_REASON)

    if action_type == ActionType.REQUIRE_2FA:
        return state

    if action_type in (ActionType.ALLOW_METHODS, ActionType.DENY_METHODS):
        if not _is_method_list(action.methods):
            if logger is not None:
                logger.warning(f"Action {action_type.value} requires a 'methods' list, ignoring")
            return state

        if action_type == ActionType.ALLOW_METHODS:
            # Whitelist replaces the current set, it does not extend it
            return replace(state, allowed_methods=_unique(action.methods))

        return replace(
            state,
            allowed_methods=tuple(m for m in state.allowed_methods if m not in action.methods),
            denied_methods=_unique(state.denied_methods + tuple(action.methods)),
        )

    if action_type == ActionType.REQUIRE_METHOD:
        if not isinstance(action.method, str) or not action.method:
            if logger is not None:
                logger.warning("Action require_method requires a 'method', ignoring")
            return state

        if action.method not in state.allowed_methods:
            return state.block(action.reason or f"{action.method} authentication required")
        return replace(state, allowed_methods=(action.method,))

    raise AssertionError(f"Unhandled action type: {action_type}")


def apply_actions(
    state: DecisionState,
    actions: Sequence[Action],
    logger: Optional[logging.Logger] = None,
) -> DecisionState:
    """Apply a rule's actions in order.

    Any action that blocks ends the list immediately. Afterwards an empty
    allowed set turns into a block even if no action blocked explicitly.
    """
    for action in actions:
        state = apply_action(state, action, logger)
        if not state.allowed:
            return state

    if not state.allowed_methods:
        state = replace(
            state,
            allowed=False,
            block_reason=state.block_reason or NO_METHODS_REASON,
        )

    return state
