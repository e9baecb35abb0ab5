"""Velocity signals - conditions answered from historical activity.

Each signal reads the activity log over a trailing time window:

- ip_activity_threshold: how many attempts came from this IP
- ip_multi_account: how many different accounts signed in from this IP
- user_country_jump: whether the user signed in from several countries

Signals never write. Store failures are raised as ActivityStoreError and
handled by the engine.
"""

import logging
import operator as op
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from signin_guard.common.exceptions import ActivityStoreError, SignInGuardException
from signin_guard.rules.schemas import AuthContext, SignalField
from signin_guard.stores.activity_store import ActivityStore


# Default configuration per signal
IP_ACTIVITY_WINDOW_MINUTES = 5
IP_ACTIVITY_THRESHOLD = 10
IP_ACTIVITY_OPERATOR = "gt"

MULTI_ACCOUNT_WINDOW_MINUTES = 10
MULTI_ACCOUNT_THRESHOLD = 3

COUNTRY_JUMP_WINDOW_MINUTES = 30

# Comparisons supported by ip_activity_threshold
THRESHOLD_COMPARATORS: Dict[str, Callable[[int, int], bool]] = {
    "gt": op.gt,
    "gte": op.ge,
    "lt": op.lt,
    "lte": op.le,
    "eq": op.eq,
    "neq": op.ne,
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SignalConfigError(ValueError):
    """Raised when a signal's configuration value cannot be used."""


def _positive_int(config: Mapping[str, Any], key: str, default: int) -> int:
    raw = config.get(key)
    if raw is None:
        return default
    if isinstance(raw, bool):
        raise SignalConfigError(f"{key} must be a number, got {raw!r}")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise SignalConfigError(f"{key} must be a number, got {raw!r}")
    if value < 0:
        raise SignalConfigError(f"{key} must not be negative, got {value}")
    return value


class SignalChecker:
    """Evaluates the stateful signal conditions against the activity log."""

    def __init__(
        self,
        activity_store: ActivityStore,
        logger: logging.Logger,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = activity_store
        self._logger = logger
        self._clock = clock

    async def check(
        self,
        signal: SignalField,
        config: Any,
        context: AuthContext,
        condition_operator: Optional[str] = None,
    ) -> bool:
        """Dispatch to the check for ``signal``.

        Args:
            signal: Which signal to evaluate
            config: The condition's value, expected to be a mapping
            context: Authentication context
            condition_operator: The condition's operator, used as the
                comparison for ip_activity_threshold when it names one

        Returns:
            Whether the signal fired. Unusable configuration yields False.
        """
        if not isinstance(config, Mapping):
            if config is not None:
                self._logger.warning(
                    f"Signal {signal.value} expects a configuration mapping, got {config!r}"
                )
            return False

        try:
            if signal == SignalField.IP_ACTIVITY_THRESHOLD:
                return await self.ip_activity_threshold(context, config, condition_operator)
            if signal == SignalField.IP_MULTI_ACCOUNT:
                return await self.ip_multi_account(context, config)
            if signal == SignalField.USER_COUNTRY_JUMP:
                return await self.user_country_jump(context, config)
        except SignalConfigError as e:
            self._logger.warning(f"Invalid {signal.value} configuration: {e}")
            return False

        raise AssertionError(f"Unhandled signal: {signal}")

    def _window_start(self, minutes: int) -> datetime:
        return self._clock() - timedelta(minutes=minutes)

    async def _query(self, name: str, *args: Any, **kwargs: Any) -> Any:
        try:
            return await getattr(self._store, name)(*args, **kwargs)
        except SignInGuardException:
            raise
        except Exception as e:
            raise ActivityStoreError(
                f"Activity query {name} failed: {e}",
                query=name,
            ) from e

    async def ip_activity_threshold(
        self,
        context: AuthContext,
        config: Mapping[str, Any],
        condition_operator: Optional[str] = None,
    ) -> bool:
        """Compare the number of attempts from the context IP to a threshold."""
        if not context.ip_address:
            return False

        window = _positive_int(config, "timeWindowMinutes", IP_ACTIVITY_WINDOW_MINUTES)
        threshold = _positive_int(config, "activityThreshold", IP_ACTIVITY_THRESHOLD)

        if condition_operator in THRESHOLD_COMPARATORS:
            comparison = condition_operator
        else:
            comparison = config.get("operator") or IP_ACTIVITY_OPERATOR
        if comparison not in THRESHOLD_COMPARATORS:
            self._logger.warning(
                f"Unknown ip_activity_threshold operator {comparison!r}, using 'gt'"
            )
            comparison = "gt"

        count = await self._query(
            "count_activity_by_ip",
            context.ip_address,
            self._window_start(window),
            success_only=False,
        )
        matched = THRESHOLD_COMPARATORS[comparison](count, threshold)

        self._logger.debug(
            f"ip_activity_threshold: {count} attempts from {context.ip_address} "
            f"in {window}m, {comparison} {threshold} -> {matched}"
        )
        return matched

    async def ip_multi_account(self, context: AuthContext, config: Mapping[str, Any]) -> bool:
        """Detect an IP that signed in to many different accounts."""
        if not context.ip_address:
            return False

        window = _positive_int(config, "timeWindowMinutes", MULTI_ACCOUNT_WINDOW_MINUTES)
        threshold = _positive_int(config, "accountThreshold", MULTI_ACCOUNT_THRESHOLD)

        accounts = await self._query(
            "count_distinct_usernames_by_ip",
            context.ip_address,
            self._window_start(window),
        )
        matched = accounts >= threshold

        self._logger.debug(
            f"ip_multi_account: {accounts} accounts from {context.ip_address} "
            f"in {window}m, threshold {threshold} -> {matched}"
        )
        return matched

    async def user_country_jump(self, context: AuthContext, config: Mapping[str, Any]) -> bool:
        """Detect successful sign-ins for one user from several countries."""
        if not context.username:
            return False

        window = _positive_int(config, "timeWindowMinutes", COUNTRY_JUMP_WINDOW_MINUTES)

        countries = await self._query(
            "distinct_countries_by_username",
            context.username,
            self._window_start(window),
        )
        distinct = {country for country in countries if country is not None}
        matched = len(distinct) > 1

        self._logger.debug(
            f"user_country_jump: {context.username} seen in {sorted(distinct)} "
            f"in {window}m -> {matched}"
        )
        return matched
