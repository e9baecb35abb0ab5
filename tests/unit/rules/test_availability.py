"""Unit tests for filtering registered methods by a decision."""

import pytest

from signin_guard.rules.availability import RegisteredMethod, filter_available_methods
from signin_guard.rules.schemas import EvaluationOutcome, EvaluationResult


@pytest.fixture
def registered():
    return [
        RegisteredMethod(id=1, method_type="passkey", identifier="MacBook", is_primary=True),
        RegisteredMethod(id=2, method_type="email_otp", identifier="a***@example.com"),
        RegisteredMethod(id=3, method_type="sms_otp", identifier="+1 *** 0100"),
    ]


class TestFilterAvailableMethods:
    """Test method filtering and summary flags."""

    def test_allowed_methods_filter(self, registered):
        result = EvaluationResult(
            outcome=EvaluationOutcome.ALLOWED,
            allowed=True,
            allowed_methods=["email_otp", "sms_otp"],
        )
        available = filter_available_methods(result, registered)

        assert available.blocked is False
        assert [m.id for m in available.methods] == [2, 3]
        assert available.summary.total == 2
        assert available.summary.has_email_otp is True
        assert available.summary.has_passkey is False
        assert available.summary.primary_method is None

    def test_blocked_returns_nothing(self, registered):
        result = EvaluationResult(
            outcome=EvaluationOutcome.BLOCKED,
            allowed=False,
            block_reason="Access denied by security rule",
        )
        available = filter_available_methods(result, registered)

        assert available.blocked is True
        assert available.block_reason == "Access denied by security rule"
        assert available.methods == []
        assert available.summary.total == 0

    def test_empty_allowed_list_is_unrestricted(self, registered):
        result = EvaluationResult(outcome=EvaluationOutcome.ALLOWED, allowed=True)
        available = filter_available_methods(result, registered)

        assert len(available.methods) == 3
        assert available.summary.primary_method == "passkey"
        assert available.summary.has_sms_otp is True
        assert available.summary.has_digitalid is False

    def test_degraded_result_keeps_registered(self, registered):
        result = EvaluationResult(
            outcome=EvaluationOutcome.DEGRADED_ALLOW,
            allowed=True,
            allowed_methods=["passkey", "email_otp", "sms_otp"],
            error="rule store unavailable",
        )
        available = filter_available_methods(result, registered)
        assert len(available.methods) == 3
