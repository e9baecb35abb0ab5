"""Example: Impossible-travel sign-in scenario."""

import asyncio
from datetime import datetime, timedelta, timezone

from signin_guard.common.logging import get_logger
from signin_guard.rules.engine import RulesEngine
from signin_guard.rules.schemas import AuthContext
from signin_guard.stores.activity_store import ActivityRecord, InMemoryActivityLog
from signin_guard.stores.rule_store import InMemoryRuleStore

logger = get_logger(__name__)


RULES = [
    {
        "id": "travel",
        "name": "Impossible travel requires passkey",
        "priority": 10,
        "conditions": {
            "operator": "AND",
            "rules": [{"field": "user_country_jump", "operator": "equals", "value": {"timeWindowMinutes": 30}}],
        },
        "actions": {"type": "require_method", "method": "passkey"},
    },
]


async def example_impossible_travel():
    """
    Example scenario: the same user signs in from two countries.
    
    1. Alice signs in from the US
    2. Ten minutes later someone signs in as Alice from France
    3. The next sign-in is limited to passkey
    """
    now = datetime.now(timezone.utc)
    activity = InMemoryActivityLog([
        ActivityRecord(username="alice", ip_address="203.0.113.7", geo_country="US",
                       success=True, auth_method="passkey", created_at=now - timedelta(minutes=12)),
        ActivityRecord(username="alice", ip_address="198.51.100.30", geo_country="FR",
                       success=True, auth_method="email_otp", created_at=now - timedelta(minutes=2)),
    ])
    engine = RulesEngine(InMemoryRuleStore(RULES), activity_store=activity)

    context = AuthContext(
        username="alice",
        ip_address="198.51.100.30",
        geo_country="FR",
        user_auth_methods=["passkey", "email_otp", "sms_otp"],
    )
    result = await engine.evaluate(context)

    logger.info(f"Outcome: {result.outcome.value}, methods: {result.allowed_methods}")
    return result


if __name__ == "__main__":
    asyncio.run(example_impossible_travel())
