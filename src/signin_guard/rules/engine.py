"""Rules Engine - decides which sign-in methods a context may use."""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from signin_guard.common.config import get_config
from signin_guard.common.logging import get_logger
from signin_guard.rules.actions import DecisionState, apply_actions
from signin_guard.rules.conditions import ConditionEvaluator
from signin_guard.rules.schemas import (
    AppliedRule,
    AuthContext,
    EvaluationOutcome,
    EvaluationResult,
    Rule,
)
from signin_guard.rules.signals import SignalChecker, utc_now
from signin_guard.stores.activity_store import ActivityStore, InMemoryActivityLog
from signin_guard.stores.rule_store import InMemoryRuleStore, RuleStore, order_enabled


class RulesEngine:
    """Evaluates authentication rules before a user picks a sign-in method.

    Rules run in ascending priority. Each matching rule applies its actions;
    the first rule that blocks access ends the evaluation.

    The engine fails open: if anything goes wrong while evaluating (rule
    store down, activity query failing, a defect in a rule), the caller gets
    the user's registered methods with outcome ``DEGRADED_ALLOW`` and the
    error message attached. A broken engine therefore never locks users
    out, and a broken rule does not enforce its policy. Callers should alert
    on ``is_degraded``.
    """

    def __init__(
        self,
        rule_store: RuleStore,
        activity_store: Optional[ActivityStore] = None,
        default_methods: Optional[Sequence[str]] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the engine.

        Args:
            rule_store: Source of enabled rules
            activity_store: Activity log for velocity signals. An empty
                in-memory log is used if not provided.
            default_methods: Methods offered to users with none registered.
                Defaults to the configured ``default_auth_methods``.
            logger: Logger for diagnostics
            clock: Returns the current time, used for signal windows
        """
        self.rule_store = rule_store
        self.activity_store = activity_store if activity_store is not None else InMemoryActivityLog()
        self.default_methods: List[str] = list(
            default_methods if default_methods is not None else get_config().default_auth_methods
        )
        self.logger = logger or get_logger(__name__)
        self._clock = clock
        self._conditions = ConditionEvaluator(
            SignalChecker(self.activity_store, self.logger, clock=clock),
            self.logger,
        )

    def _methods_for(self, context: AuthContext) -> List[str]:
        return list(context.user_auth_methods or self.default_methods)

    async def evaluate(self, context: AuthContext) -> EvaluationResult:
        """Evaluate all enabled rules for a sign-in context.

        This is the main entry point. It never raises.

        Args:
            context: Situational facts for this sign-in attempt

        Returns:
            EvaluationResult with the allowed methods and block status
        """
        try:
            rules = await self.rule_store.get_enabled_rules_ordered_by_priority()
            return await self._evaluate_rules(rules, context)
        except Exception as e:
            self.logger.error(
                f"Rules evaluation failed for {context.username!r}, allowing by default: {e}",
                exc_info=True,
            )
            return EvaluationResult(
                outcome=EvaluationOutcome.DEGRADED_ALLOW,
                allowed=True,
                allowed_methods=self._methods_for(context),
                denied_methods=[],
                applied_rules=[],
                block_reason=None,
                error=str(e),
            )

    async def test_rule(self, rule: Rule, context: AuthContext) -> EvaluationResult:
        """Dry-run a single rule against a sample context.

        The rule does not need to be stored or enabled. Errors are reported
        as ``DEGRADED_ALLOW`` just like ``evaluate``.
        """
        probe = rule.model_copy(update={"is_enabled": True})
        engine = RulesEngine(
            InMemoryRuleStore([probe]),
            activity_store=self.activity_store,
            default_methods=self.default_methods,
            logger=self.logger,
            clock=self._clock,
        )
        return await engine.evaluate(context)

    async def _evaluate_rules(self, rules: Sequence[Rule], context: AuthContext) -> EvaluationResult:
        # Ascending priority, enabled only
        rules = order_enabled(rules)

        if not rules:
            return EvaluationResult(
                outcome=EvaluationOutcome.NO_RULES,
                allowed=True,
                allowed_methods=self._methods_for(context),
            )

        state = DecisionState.initial(self._methods_for(context))
        applied: List[AppliedRule] = []

        for rule in rules:
            if not await self._conditions.evaluate_conditions(rule.conditions, context):
                continue

            applied.append(AppliedRule(id=rule.id, name=rule.name, priority=rule.priority))
            self.logger.debug(f"Rule {rule.name!r} (priority {rule.priority}) matched")

            state = apply_actions(state, rule.actions, self.logger)

            if not state.allowed:
                self.logger.info(
                    f"Access blocked for {context.username!r} by rule {rule.name!r}: "
                    f"{state.block_reason}"
                )
                break

        return EvaluationResult(
            outcome=EvaluationOutcome.ALLOWED if state.allowed else EvaluationOutcome.BLOCKED,
            allowed=state.allowed,
            allowed_methods=list(state.allowed_methods),
            denied_methods=list(state.denied_methods),
            applied_rules=applied,
            block_reason=state.block_reason,
        )
