"""Shared fixtures for SignInGuard tests."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from signin_guard.common.config import reset_config
from signin_guard.rules.schemas import AuthContext
from signin_guard.stores.activity_store import ActivityRecord, InMemoryActivityLog


NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def minutes_ago(minutes: float) -> datetime:
    return NOW - timedelta(minutes=minutes)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Each test sees configuration built from its own environment."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def clock():
    """Fixed clock for signal windows."""
    return lambda: NOW


@pytest.fixture
def rules_logger():
    return logging.getLogger("signin_guard.tests")


@pytest.fixture
def activity_log():
    return InMemoryActivityLog()


@pytest.fixture
def record_activity(activity_log):
    """Append activity rows relative to NOW."""
    def _record(
        username="alice",
        ip_address="203.0.113.7",
        geo_country="US",
        success=True,
        minutes=1,
    ):
        activity_log.record(ActivityRecord(
            username=username,
            ip_address=ip_address,
            geo_country=geo_country,
            success=success,
            auth_method="passkey",
            created_at=minutes_ago(minutes),
        ))
    return _record


@pytest.fixture
def sample_context():
    """A sign-in attempt from a US address with two registered methods."""
    return AuthContext(
        username="alice",
        email="alice@example.com",
        ip_address="203.0.113.7",
        geo_country="US",
        geo_city="Boston",
        user_agent="Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) Safari/605.1.15",
        user_auth_methods=["passkey", "email_otp"],
    )
