"""Rules schemas - type definitions for authentication rules and decisions.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConditionOperator(str, Enum):
    """Comparison operators a condition may use."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN = "in"
    NOT_IN = "not_in"
    IP_IN_RANGE = "ip_in_range"
    IP_EQUALS = "ip_equals"
    COUNTRY_EQUALS = "country_equals"
    COUNTRY_IN = "country_in"
    COUNTRY_NOT_IN = "country_not_in"


class SignalField(str, Enum):
    """Condition fields backed by historical activity queries."""
    IP_ACTIVITY_THRESHOLD = "ip_activity_threshold"
    IP_MULTI_ACCOUNT = "ip_multi_account"
    USER_COUNTRY_JUMP = "user_country_jump"


class GroupOperator(str, Enum):
    """Boolean operators for combining conditions."""
    AND = "AND"
    OR = "OR"


class ActionType(str, Enum):
    """Actions a matched rule can apply."""
    BLOCK_ACCESS = "block_access"
    REQUIRE_2FA = "require_2fa"  # reserved, no effect yet
    ALLOW_METHODS = "allow_methods"
    DENY_METHODS = "deny_methods"
    REQUIRE_METHOD = "require_method"


class EvaluationOutcome(str, Enum):
    """How an evaluation reached its decision."""
    ALLOWED = "allowed"
    BLOCKED = "blocked"
    NO_RULES = "no_rules"
    DEGRADED_ALLOW = "degraded_allow"


class AuthContext(BaseModel):
    """Situational facts known at authentication time.

    Extra keys are kept so that rules can address them by dotted path.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    username: Optional[str] = Field(default=None, description="Username attempting to sign in")
    email: Optional[str] = Field(default=None, description="User email, if known")
    user_id: Optional[Union[int, str]] = Field(default=None, description="User identifier, if known")
    ip_address: Optional[str] = Field(default=None, description="Client IP address")
    geo_country: Optional[str] = Field(default=None, description="ISO country code, e.g. 'US'")
    geo_city: Optional[str] = Field(default=None, description="City name")
    user_agent: Optional[str] = Field(default=None, description="Browser user agent")
    user_auth_methods: Optional[List[str]] = Field(
        default_factory=list,
        description="Authentication methods the user has registered"
    )


class Condition(BaseModel):
    """An atomic predicate over the context or historical activity.

    ``operator`` is kept as a plain string so a rule with an unknown
    operator still loads and simply never matches.
    """
    field: str = Field(..., min_length=1, description="Context path or signal name")
    operator: str = Field(default="equals", description="Comparison operator")
    value: Any = Field(default=None, description="Operand, or signal configuration")


class ConditionGroup(BaseModel):
    """Conditions joined with AND/OR. An empty group always matches."""
    operator: str = Field(default=GroupOperator.AND.value, description="AND or OR")
    rules: List[Condition] = Field(default_factory=list)


class Action(BaseModel):
    """One effect of a matched rule.

    ``methods`` and ``method`` are checked when the action is applied. A
    malformed value makes that action a no-op.
    """
    type: str = Field(..., description="Action type")
    methods: Optional[Any] = Field(
        default=None,
        description="Methods for allow_methods / deny_methods"
    )
    method: Optional[Any] = Field(
        default=None,
        description="Method for require_method"
    )
    reason: Optional[str] = Field(default=None, description="Block reason shown to the caller")


class Rule(BaseModel):
    """A named, prioritized (conditions -> actions) policy entry."""
    id: Union[int, str] = Field(..., description="Rule identifier")
    name: str = Field(..., description="Human-readable rule name")
    description: Optional[str] = Field(default=None)
    priority: int = Field(default=100, description="Lower values are evaluated first")
    is_enabled: bool = Field(default=True)
    conditions: Optional[ConditionGroup] = Field(default_factory=ConditionGroup)
    actions: List[Action] = Field(default_factory=list)

    @field_validator("actions", mode="before")
    @classmethod
    def _normalize_actions(cls, value: Any) -> Any:
        """Accept a single action object as well as a list."""
        if value is None:
            return []
        if isinstance(value, (dict, Action)):
            return [value]
        return value

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": 1,
                "name": "Deny email OTP from RU",
                "priority": 1,
                "is_enabled": True,
                "conditions": {
                    "operator": "AND",
                    "rules": [
                        {"field": "geo_country", "operator": "equals", "value": "RU"}
                    ],
                },
                "actions": {"type": "deny_methods", "methods": ["email_otp"]},
            }
        }
    }


class AppliedRule(BaseModel):
    """Summary of a rule whose conditions matched."""
    id: Union[int, str]
    name: str
    priority: int


class EvaluationResult(BaseModel):
    """Decision returned by the rules engine.

    ``to_response()`` renders the camelCase shape the sign-in flow consumes.
    """
    outcome: EvaluationOutcome = Field(..., description="How the decision was reached")
    allowed: bool = Field(..., description="Whether sign-in may proceed")
    allowed_methods: List[str] = Field(
        default_factory=list,
        serialization_alias="allowedMethods",
    )
    denied_methods: List[str] = Field(
        default_factory=list,
        serialization_alias="deniedMethods",
    )
    applied_rules: List[AppliedRule] = Field(
        default_factory=list,
        serialization_alias="appliedRules",
    )
    block_reason: Optional[str] = Field(default=None, serialization_alias="blockReason")
    error: Optional[str] = Field(
        default=None,
        description="Engine failure message when the outcome is degraded_allow"
    )

    @property
    def is_blocked(self) -> bool:
        """Check if access was blocked."""
        return self.outcome == EvaluationOutcome.BLOCKED

    @property
    def is_degraded(self) -> bool:
        """Check if the engine failed and defaulted to allow."""
        return self.outcome == EvaluationOutcome.DEGRADED_ALLOW

    def to_response(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, dropping ``error`` when unset."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=False,
            exclude={"error"} if self.error is None else None,
        )
