"""Rule schemas - conditions, actions, rules and action results.

A rule combines condition groups (when to fire) with an ordered list of
actions (what to do). Groups are AND'd together; conditions inside one
group are OR'd. All models are frozen once constructed.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from streamwarden.common.constants import ActionConstants


# ============================================================================
# Conditions
# ============================================================================

class Operator(str, Enum):
    """Condition operators."""
    # Comparison
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    # Array
    IN = "in"
    NOT_IN = "not_in"
    # String
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"


class FieldCategory(str, Enum):
    """Categories of condition fields."""
    SESSION_BEHAVIOR = "session_behavior"
    STREAM_QUALITY = "stream_quality"
    USER_ATTRIBUTE = "user_attribute"
    DEVICE_CLIENT = "device_client"
    NETWORK_LOCATION = "network_location"
    SCOPE = "scope"


class ConditionField(str, Enum):
    """Closed set of fields a condition can test."""
    # Session behavior
    CONCURRENT_STREAMS = "concurrent_streams"
    ACTIVE_SESSION_DISTANCE_KM = "active_session_distance_km"
    TRAVEL_SPEED_KMH = "travel_speed_kmh"
    UNIQUE_IPS_IN_WINDOW = "unique_ips_in_window"
    UNIQUE_DEVICES_IN_WINDOW = "unique_devices_in_window"
    INACTIVE_DAYS = "inactive_days"
    # Stream quality
    SOURCE_RESOLUTION = "source_resolution"
    OUTPUT_RESOLUTION = "output_resolution"
    IS_TRANSCODING = "is_transcoding"
    IS_TRANSCODE_DOWNGRADE = "is_transcode_downgrade"
    SOURCE_BITRATE_MBPS = "source_bitrate_mbps"
    # User attribute
    USER_ID = "user_id"
    TRUST_SCORE = "trust_score"
    ACCOUNT_AGE_DAYS = "account_age_days"
    # Device / client
    DEVICE_TYPE = "device_type"
    CLIENT_NAME = "client_name"
    PLATFORM = "platform"
    # Network / location
    IS_LOCAL_NETWORK = "is_local_network"
    COUNTRY = "country"
    IP_IN_RANGE = "ip_in_range"
    # Scope
    SERVER_ID = "server_id"
    LIBRARY_ID = "library_id"
    MEDIA_TYPE = "media_type"

    @property
    def category(self) -> FieldCategory:
        return FIELD_CATEGORIES[self]

    @property
    def is_windowed(self) -> bool:
        """Whether the field is computed over a rolling time window."""
        return self in WINDOWED_FIELDS


FIELD_CATEGORIES: Dict[ConditionField, FieldCategory] = {
    ConditionField.CONCURRENT_STREAMS: FieldCategory.SESSION_BEHAVIOR,
    ConditionField.ACTIVE_SESSION_DISTANCE_KM: FieldCategory.SESSION_BEHAVIOR,
    ConditionField.TRAVEL_SPEED_KMH: FieldCategory.SESSION_BEHAVIOR,
    ConditionField.UNIQUE_IPS_IN_WINDOW: FieldCategory.SESSION_BEHAVIOR,
    ConditionField.UNIQUE_DEVICES_IN_WINDOW: FieldCategory.SESSION_BEHAVIOR,
    ConditionField.INACTIVE_DAYS: FieldCategory.SESSION_BEHAVIOR,
    ConditionField.SOURCE_RESOLUTION: FieldCategory.STREAM_QUALITY,
    ConditionField.OUTPUT_RESOLUTION: FieldCategory.STREAM_QUALITY,
    ConditionField.IS_TRANSCODING: FieldCategory.STREAM_QUALITY,
    ConditionField.IS_TRANSCODE_DOWNGRADE: FieldCategory.STREAM_QUALITY,
    ConditionField.SOURCE_BITRATE_MBPS: FieldCategory.STREAM_QUALITY,
    ConditionField.USER_ID: FieldCategory.USER_ATTRIBUTE,
    ConditionField.TRUST_SCORE: FieldCategory.USER_ATTRIBUTE,
    ConditionField.ACCOUNT_AGE_DAYS: FieldCategory.USER_ATTRIBUTE,
    ConditionField.DEVICE_TYPE: FieldCategory.DEVICE_CLIENT,
    ConditionField.CLIENT_NAME: FieldCategory.DEVICE_CLIENT,
    ConditionField.PLATFORM: FieldCategory.DEVICE_CLIENT,
    ConditionField.IS_LOCAL_NETWORK: FieldCategory.NETWORK_LOCATION,
    ConditionField.COUNTRY: FieldCategory.NETWORK_LOCATION,
    ConditionField.IP_IN_RANGE: FieldCategory.NETWORK_LOCATION,
    ConditionField.SERVER_ID: FieldCategory.SCOPE,
    ConditionField.LIBRARY_ID: FieldCategory.SCOPE,
    ConditionField.MEDIA_TYPE: FieldCategory.SCOPE,
}

WINDOWED_FIELDS = frozenset({
    ConditionField.UNIQUE_IPS_IN_WINDOW,
    ConditionField.UNIQUE_DEVICES_IN_WINDOW,
})

ConditionValue = Union[bool, int, float, str, List[str], List[int], List[float]]


class ConditionParams(BaseModel):
    """Extra parameters for time-windowed fields."""
    model_config = ConfigDict(frozen=True)

    window_hours: Optional[int] = Field(default=None, gt=0)


class Condition(BaseModel):
    """A single field/operator/value test."""
    model_config = ConfigDict(frozen=True)

    field: ConditionField
    operator: Operator
    value: ConditionValue
    params: Optional[ConditionParams] = None

    @property
    def effective_window_hours(self) -> Optional[int]:
        """Window for windowed fields, defaulting to 24 hours."""
        if not self.field.is_windowed:
            return None
        if self.params is not None and self.params.window_hours is not None:
            return self.params.window_hours
        return ActionConstants.DEFAULT_WINDOW_HOURS


class ConditionGroup(BaseModel):
    """Conditions combined with OR."""
    model_config = ConfigDict(frozen=True)

    conditions: List[Condition] = Field(..., min_length=1)


class RuleConditions(BaseModel):
    """Condition groups combined with AND."""
    model_config = ConfigDict(frozen=True)

    groups: List[ConditionGroup] = Field(..., min_length=1)


# ============================================================================
# Actions
# ============================================================================

class ActionType(str, Enum):
    """Action discriminator values."""
    CREATE_VIOLATION = "create_violation"
    LOG_ONLY = "log_only"
    NOTIFY = "notify"
    ADJUST_TRUST = "adjust_trust"
    SET_TRUST = "set_trust"
    RESET_TRUST = "reset_trust"
    KILL_STREAM = "kill_stream"
    MESSAGE_CLIENT = "message_client"


class ViolationSeverity(str, Enum):
    LOW = "low"
    WARNING = "warning"
    HIGH = "high"


class NotificationChannel(str, Enum):
    PUSH = "push"
    DISCORD = "discord"
    EMAIL = "email"
    WEBHOOK = "webhook"


class SessionTarget(str, Enum):
    """Which of a user's concurrent sessions an action applies to."""
    TRIGGERING = "triggering"
    OLDEST = "oldest"
    NEWEST = "newest"
    ALL_EXCEPT_ONE = "all_except_one"
    ALL_USER = "all_user"


class BaseAction(BaseModel):
    """Common base of every action variant."""
    model_config = ConfigDict(frozen=True)


class CreateViolationAction(BaseAction):
    type: Literal["create_violation"] = "create_violation"
    severity: ViolationSeverity
    cooldown_minutes: Optional[int] = Field(default=None, gt=0)


class LogOnlyAction(BaseAction):
    type: Literal["log_only"] = "log_only"
    message: Optional[str] = Field(default=None, max_length=ActionConstants.MESSAGE_MAX_LENGTH)


class NotifyAction(BaseAction):
    type: Literal["notify"] = "notify"
    channels: List[NotificationChannel] = Field(default_factory=list)
    cooldown_minutes: Optional[int] = Field(default=None, gt=0)


class AdjustTrustAction(BaseAction):
    type: Literal["adjust_trust"] = "adjust_trust"
    amount: int = Field(..., ge=ActionConstants.TRUST_ADJUST_MIN, le=ActionConstants.TRUST_ADJUST_MAX)


class SetTrustAction(BaseAction):
    type: Literal["set_trust"] = "set_trust"
    value: int = Field(..., ge=ActionConstants.TRUST_SCORE_MIN, le=ActionConstants.TRUST_SCORE_MAX)


class ResetTrustAction(BaseAction):
    type: Literal["reset_trust"] = "reset_trust"


class KillStreamAction(BaseAction):
    type: Literal["kill_stream"] = "kill_stream"
    delay_seconds: Optional[int] = Field(default=None, ge=0, le=ActionConstants.KILL_DELAY_MAX_SECONDS)
    message: Optional[str] = Field(default=None, max_length=ActionConstants.MESSAGE_MAX_LENGTH)
    target: Optional[SessionTarget] = None
    require_confirmation: Optional[bool] = None
    cooldown_minutes: Optional[int] = Field(default=None, gt=0)


class MessageClientAction(BaseAction):
    type: Literal["message_client"] = "message_client"
    message: Optional[str] = Field(default="", max_length=ActionConstants.MESSAGE_MAX_LENGTH)
    target: Optional[SessionTarget] = None


Action = Annotated[
    Union[
        CreateViolationAction,
        LogOnlyAction,
        NotifyAction,
        AdjustTrustAction,
        SetTrustAction,
        ResetTrustAction,
        KillStreamAction,
        MessageClientAction,
    ],
    Field(discriminator="type"),
]

ACTION_MODELS: Dict[str, Type[BaseAction]] = {
    ActionType.CREATE_VIOLATION.value: CreateViolationAction,
    ActionType.LOG_ONLY.value: LogOnlyAction,
    ActionType.NOTIFY.value: NotifyAction,
    ActionType.ADJUST_TRUST.value: AdjustTrustAction,
    ActionType.SET_TRUST.value: SetTrustAction,
    ActionType.RESET_TRUST.value: ResetTrustAction,
    ActionType.KILL_STREAM.value: KillStreamAction,
    ActionType.MESSAGE_CLIENT.value: MessageClientAction,
}

_action_adapter: TypeAdapter = TypeAdapter(Action)


def parse_action(raw: Dict[str, Any]) -> BaseAction:
    """Parse a stored action mapping into its typed variant.

    Raises:
        pydantic.ValidationError: If the type is unknown or fields are invalid
    """
    return _action_adapter.validate_python(raw)


def get_cooldown_minutes(action: Any) -> Optional[int]:
    """Cooldown window of an action, if its variant has one."""
    return getattr(action, "cooldown_minutes", None)


def requires_confirmation(action: Any) -> bool:
    """Whether the action must be approved by an operator first."""
    return getattr(action, "require_confirmation", None) is True


class RuleActions(BaseModel):
    """Ordered actions of a rule."""
    model_config = ConfigDict(frozen=True)

    actions: List[Action] = Field(..., min_length=1)


# ============================================================================
# Rule
# ============================================================================

class Rule(BaseModel):
    """A named policy: conditions decide when, actions decide what.

    A rule with ``server_id`` None applies to every server.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str = Field(..., description="Unique rule identifier")
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    server_id: Optional[str] = Field(default=None, description="Server scope (None = all)")
    is_active: bool = Field(default=True)
    conditions: RuleConditions
    actions: RuleActions


# ============================================================================
# Action results
# ============================================================================

class ActionResult(BaseModel):
    """Outcome of one action. Always returned, never raised."""
    model_config = ConfigDict(frozen=True)

    action_type: str
    success: bool
    message: Optional[str] = None
    skipped: bool = False
    skip_reason: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def executed(cls, action_type: str) -> "ActionResult":
        return cls(action_type=action_type, success=True, message=f"Executed {action_type}")

    @classmethod
    def deferred(cls, action_type: str, reason: str) -> "ActionResult":
        return cls(action_type=action_type, success=True, skipped=True, skip_reason=reason)

    @classmethod
    def failed(cls, action_type: str, message: str) -> "ActionResult":
        return cls(action_type=action_type, success=False, message=message, error_message=message)

    def to_record(self, rule_id: str, violation_id: Optional[str] = None) -> Dict[str, Any]:
        """Storage row for this result."""
        return {
            "violationId": violation_id,
            "ruleId": rule_id,
            "actionType": self.action_type,
            "success": self.success,
            "skipped": self.skipped,
            "skipReason": self.skip_reason,
            "errorMessage": None if self.success else (self.error_message or self.message),
        }


class ActionResultSummary(BaseModel):
    """Counts of effective enforcement versus deferrals and failures."""
    total: int = 0
    executed: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0


def summarize_results(results: List[ActionResult]) -> ActionResultSummary:
    """Count executed, skipped and failed results."""
    summary = ActionResultSummary(total=len(results))
    for result in results:
        if not result.success:
            summary.failed += 1
        elif result.skipped:
            summary.skipped += 1
        else:
            summary.executed += 1
    return summary
