"""Method availability - filters a user's registered methods by a decision.

Used by the sign-in flow to show only the methods the rules allow.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from signin_guard.rules.schemas import EvaluationResult


class RegisteredMethod(BaseModel):
    """An authentication method the user has enrolled."""
    id: Union[int, str] = Field(..., description="Method record identifier")
    method_type: str = Field(..., description="passkey, digitalid, email_otp or sms_otp")
    identifier: Optional[str] = Field(default=None, description="e.g. masked email or phone")
    device_info: Optional[Dict[str, Any]] = Field(default=None)
    is_primary: bool = Field(default=False)
    last_used_at: Optional[datetime] = Field(default=None)
    created_at: Optional[datetime] = Field(default=None)


class MethodSummary(BaseModel):
    """Quick flags the sign-in page renders from."""
    total: int = 0
    has_passkey: bool = False
    has_digitalid: bool = False
    has_email_otp: bool = False
    has_sms_otp: bool = False
    primary_method: Optional[str] = None


class AvailableMethods(BaseModel):
    """Methods a user may sign in with right now."""
    blocked: bool = False
    block_reason: Optional[str] = None
    methods: List[RegisteredMethod] = Field(default_factory=list)
    summary: MethodSummary = Field(default_factory=MethodSummary)


def summarize(methods: List[RegisteredMethod]) -> MethodSummary:
    types = {m.method_type for m in methods}
    primary = next((m.method_type for m in methods if m.is_primary), None)
    return MethodSummary(
        total=len(methods),
        has_passkey="passkey" in types,
        has_digitalid="digitalid" in types,
        has_email_otp="email_otp" in types,
        has_sms_otp="sms_otp" in types,
        primary_method=primary,
    )


def filter_available_methods(
    result: EvaluationResult,
    registered_methods: List[RegisteredMethod],
) -> AvailableMethods:
    """Keep the registered methods the decision allows.

    A blocked decision leaves nothing. An allowed decision with an empty
    method list places no restriction.
    """
    if not result.allowed:
        return AvailableMethods(
            blocked=True,
            block_reason=result.block_reason,
        )

    methods = list(registered_methods)
    if result.allowed_methods:
        allowed = set(result.allowed_methods)
        methods = [m for m in methods if m.method_type in allowed]

    return AvailableMethods(methods=methods, summary=summarize(methods))
