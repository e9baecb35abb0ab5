"""Stores - read-only accessors for rules and authentication activity.

The engine consumes these through narrow protocols so that any backing
store (database, cache, file) can be plugged in.
"""

from signin_guard.stores.activity_store import (
    ActivityRecord,
    ActivityStore,
    InMemoryActivityLog,
)
from signin_guard.stores.rule_store import (
    InMemoryRuleStore,
    RuleStore,
    YamlRuleStore,
    load_rules,
)

__all__ = [
    "ActivityRecord",
    "ActivityStore",
    "InMemoryActivityLog",
    "InMemoryRuleStore",
    "RuleStore",
    "YamlRuleStore",
    "load_rules",
]
