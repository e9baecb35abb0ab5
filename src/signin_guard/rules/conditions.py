"""Condition evaluation - single conditions and AND/OR groups.

Conditions resolve a field from the authentication context and compare it
with the rule's value. Three field names are velocity signals answered from
the activity log instead (see signals.py).

Configuration mistakes (unknown operator, malformed range) make the single
condition false and are logged. They never abort an evaluation.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from signin_guard.rules.schemas import (
    AuthContext,
    Condition,
    ConditionGroup,
    ConditionOperator,
    GroupOperator,
    SignalField,
)
from signin_guard.rules.signals import SignalChecker


FIELD_ALIASES: Dict[str, str] = {
    "country": "geo_country",
    "city": "geo_city",
    "ip": "ip_address",
}


def get_nested_value(data: Any, path: str) -> Any:
    """Resolve a dotted path like ``device.os.name``.

    Missing keys at any depth resolve to None.
    """
    current = data
    for key in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, (list, tuple)):
            if not key.isdigit() or int(key) >= len(current):
                return None
            current = current[int(key)]
        else:
            current = getattr(current, key, None)
    return current


def _ip_to_int(ip: str) -> int:
    octets = ip.strip().split(".")
    if len(octets) != 4:
        raise ValueError(f"Not an IPv4 address: {ip!r}")
    number = 0
    for octet in octets:
        if not octet.isdigit() or int(octet) > 255:
            raise ValueError(f"Invalid octet {octet!r} in {ip!r}")
        number = (number << 8) | int(octet)
    return number


def is_ip_in_range(
    ip: Optional[str],
    ip_range: Optional[str],
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Check whether an IPv4 address falls within a CIDR range.

    A range without a prefix length must match the address exactly.

    Args:
        ip: Address to test, e.g. '192.168.1.42'
        ip_range: CIDR range such as '192.168.1.0/24', or a single address
        logger: Receives a warning when either value is malformed

    Returns:
        True if the address is inside the range. Malformed input is False.
    """
    if not ip or not ip_range or not isinstance(ip, str) or not isinstance(ip_range, str):
        return False

    if "/" not in ip_range:
        return ip == ip_range

    try:
        base, bits_text = ip_range.split("/", 1)
        bits = int(bits_text)
        if not 0 <= bits <= 32:
            raise ValueError(f"Prefix length out of range: {bits}")
        mask = (0xFFFFFFFF << (32 - bits)) & 0xFFFFFFFF
        return (_ip_to_int(ip) & mask) == (_ip_to_int(base) & mask)
    except ValueError as e:
        if logger is not None:
            logger.warning(f"Cannot match {ip!r} against range {ip_range!r}: {e}")
        return False


def _strict_equals(left: Any, right: Any) -> bool:
    # True == 1 in Python; booleans only equal booleans here
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _strict_in(needle: Any, haystack: Any) -> bool:
    return any(_strict_equals(item, needle) for item in haystack)


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# Operator -> (context_value, rule_value, context) -> bool
Comparator = Callable[[Any, Any, AuthContext], bool]

COMPARATORS: Dict[ConditionOperator, Comparator] = {
    ConditionOperator.EQUALS: lambda actual, expected, ctx: _strict_equals(actual, expected),
    ConditionOperator.NOT_EQUALS: lambda actual, expected, ctx: not _strict_equals(actual, expected),
    ConditionOperator.CONTAINS: lambda actual, expected, ctx: (
        bool(actual) and expected is not None and _as_text(expected) in _as_text(actual)
    ),
    ConditionOperator.NOT_CONTAINS: lambda actual, expected, ctx: (
        not actual or expected is None or _as_text(expected) not in _as_text(actual)
    ),
    ConditionOperator.STARTS_WITH: lambda actual, expected, ctx: (
        bool(actual) and expected is not None and _as_text(actual).startswith(_as_text(expected))
    ),
    ConditionOperator.ENDS_WITH: lambda actual, expected, ctx: (
        bool(actual) and expected is not None and _as_text(actual).endswith(_as_text(expected))
    ),
    ConditionOperator.IN: lambda actual, expected, ctx: (
        isinstance(expected, list) and _strict_in(actual, expected)
    ),
    ConditionOperator.NOT_IN: lambda actual, expected, ctx: (
        not isinstance(expected, list) or not _strict_in(actual, expected)
    ),
    # Fixed-field operators read the context directly
    ConditionOperator.IP_EQUALS: lambda actual, expected, ctx: _strict_equals(ctx.ip_address, expected),
    ConditionOperator.COUNTRY_EQUALS: lambda actual, expected, ctx: _strict_equals(ctx.geo_country, expected),
    ConditionOperator.COUNTRY_IN: lambda actual, expected, ctx: (
        isinstance(expected, list) and _strict_in(ctx.geo_country, expected)
    ),
    ConditionOperator.COUNTRY_NOT_IN: lambda actual, expected, ctx: (
        not isinstance(expected, list) or not _strict_in(ctx.geo_country, expected)
    ),
}


class ConditionEvaluator:
    """Evaluates conditions and condition groups against a context."""

    def __init__(self, signals: SignalChecker, logger: logging.Logger):
        self._signals = signals
        self._logger = logger

        # ip_in_range needs the logger, so it is bound per instance
        self._comparators: Dict[ConditionOperator, Comparator] = dict(COMPARATORS)
        self._comparators[ConditionOperator.IP_IN_RANGE] = (
            lambda actual, expected, ctx: is_ip_in_range(ctx.ip_address, expected, self._logger)
        )
        missing = set(ConditionOperator) - set(self._comparators)
        assert not missing, f"Operators without comparator: {missing}"

    async def evaluate_condition(self, condition: Condition, context: AuthContext) -> bool:
        """Evaluate one condition.

        Signal fields delegate to the activity log. Everything else resolves
        the (aliased) field by dotted path and applies the operator.
        """
        try:
            signal = SignalField(condition.field)
        except ValueError:
            signal = None

        if signal is not None:
            return await self._signals.check(
                signal, condition.value, context, condition_operator=condition.operator
            )

        try:
            operator = ConditionOperator(condition.operator)
        except ValueError:
            self._logger.warning(
                f"Unknown operator {condition.operator!r} on field {condition.field!r}"
            )
            return False

        field = FIELD_ALIASES.get(condition.field, condition.field)
        actual = get_nested_value(context.model_dump(), field)

        return self._comparators[operator](actual, condition.value, context)

    async def evaluate_conditions(
        self,
        conditions: Optional[ConditionGroup],
        context: AuthContext,
    ) -> bool:
        """Combine a group's conditions with AND/OR.

        A group with no conditions always matches. A missing group or an
        operator other than AND/OR never matches.
        If one condition raises, the rest of the group is cancelled and the
        error propagates.
        """
        if conditions is None:
            return False

        if not conditions.rules:
            return True

        try:
            operator = GroupOperator(conditions.operator)
        except ValueError:
            self._logger.warning(
                f"Unknown condition group operator {conditions.operator!r}"
            )
            return False

        tasks = [
            asyncio.ensure_future(self.evaluate_condition(condition, context))
            for condition in conditions.rules
        ]
        try:
            results: List[bool] = await asyncio.gather(*tasks)
        except BaseException:
            # One failed query fails the group; stop the sibling queries
            for task in tasks:
                task.cancel()
            raise

        if operator == GroupOperator.AND:
            return all(results)
        return any(results)
