"""Activity store - velocity queries over the authentication activity log.

Every sign-in attempt (successful or not) is appended to the activity log
by the embedding application. The rules engine only ever reads it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Protocol, Union

from pydantic import BaseModel, Field

from signin_guard.common.logging import get_logger

logger = get_logger(__name__)


class ActivityRecord(BaseModel):
    """A single authentication attempt."""
    username: Optional[str] = Field(default=None, description="Username attempted")
    user_id: Optional[Union[int, str]] = Field(default=None)
    auth_method: Optional[str] = Field(default=None, description="Method used, e.g. passkey")
    ip_address: Optional[str] = Field(default=None)
    geo_country: Optional[str] = Field(default=None)
    geo_city: Optional[str] = Field(default=None)
    user_agent: Optional[str] = Field(default=None)
    success: bool = Field(..., description="Whether the attempt succeeded")
    failure_reason: Optional[str] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the attempt happened"
    )


class ActivityStore(Protocol):
    """Read interface the velocity signals depend on."""

    async def count_activity_by_ip(
        self,
        ip_address: str,
        since: datetime,
        success_only: bool = False,
    ) -> int:
        ...

    async def count_distinct_usernames_by_ip(
        self,
        ip_address: str,
        since: datetime,
    ) -> int:
        ...

    async def distinct_countries_by_username(
        self,
        username: str,
        since: datetime,
    ) -> List[str]:
        ...


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InMemoryActivityLog:
    """Append-only activity log held in memory.

    Suitable for tests, dry runs and single-process deployments.
    Naive timestamps are treated as UTC.
    """

    def __init__(self, records: Optional[List[ActivityRecord]] = None):
        self._records: List[ActivityRecord] = []
        for record in records or []:
            self.record(record)

    def record(self, record: ActivityRecord) -> None:
        """Append an activity record."""
        self._records.append(record)
        logger.debug(
            f"Activity recorded: {record.username} from {record.ip_address} "
            f"({record.geo_country or 'unknown'}) - "
            f"{'SUCCESS' if record.success else 'FAILED'}"
        )

    def __len__(self) -> int:
        return len(self._records)

    def _since(self, since: datetime) -> List[ActivityRecord]:
        cutoff = _as_utc(since)
        return [r for r in self._records if _as_utc(r.created_at) >= cutoff]

    async def count_activity_by_ip(
        self,
        ip_address: str,
        since: datetime,
        success_only: bool = False,
    ) -> int:
        return sum(
            1
            for r in self._since(since)
            if r.ip_address == ip_address and (r.success or not success_only)
        )

    async def count_distinct_usernames_by_ip(
        self,
        ip_address: str,
        since: datetime,
    ) -> int:
        usernames = {
            r.username
            for r in self._since(since)
            if r.ip_address == ip_address and r.success and r.username is not None
        }
        return len(usernames)

    async def distinct_countries_by_username(
        self,
        username: str,
        since: datetime,
    ) -> List[str]:
        countries: List[str] = []
        for r in self._since(since):
            if r.username != username or not r.success or r.geo_country is None:
                continue
            if r.geo_country not in countries:
                countries.append(r.geo_country)
        return countries
