"""Legacy Rule Migrator - single-type rules to conditions/actions rules.

Legacy rule types and their generated condition:
- concurrent_streams: concurrent_streams > maxStreams
- geo_restriction: country in / not_in countries (blocklist / allowlist)
- impossible_travel: travel_speed_kmh > maxSpeedKmh
- simultaneous_locations: active_session_distance_km > minDistanceKm
- device_velocity: unique_ips_in_window > maxIps over windowHours
- account_inactivity: inactive_days > inactivity period in days

Every migrated rule has one condition group and one create_violation
action with severity warning. When excludePrivateIps is set, an
``is_local_network eq false`` condition is appended to that same group.

Conversion is pure: no I/O, no clock, same input gives the same output.
"""

import logging
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from streamwarden.common.constants import MigrationConstants
from streamwarden.common.exceptions import LegacyRuleConversionError
from streamwarden.rules.schemas import (
    Condition,
    ConditionField,
    ConditionGroup,
    ConditionParams,
    CreateViolationAction,
    Operator,
    Rule,
    RuleActions,
    RuleConditions,
    ViolationSeverity,
)


logger = logging.getLogger(__name__)


Number = Union[int, float]


# ============================================================================
# Legacy shapes
# ============================================================================

class LegacyRule(BaseModel):
    """A stored rule, possibly still in the legacy type/params shape."""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")

    id: str
    name: str
    type: Optional[str] = None
    params: Optional[Dict[str, Any]] = None
    server_user_id: Optional[str] = None
    server_id: Optional[str] = None
    is_active: bool = True
    conditions: Optional[Any] = None
    actions: Optional[Any] = None


class _LegacyParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")

    exclude_private_ips: bool = False


class ImpossibleTravelParams(_LegacyParams):
    max_speed_kmh: Number = MigrationConstants.DEFAULT_MAX_SPEED_KMH


class SimultaneousLocationsParams(_LegacyParams):
    min_distance_km: Number = MigrationConstants.DEFAULT_MIN_DISTANCE_KM


class DeviceVelocityParams(_LegacyParams):
    max_ips: int = MigrationConstants.DEFAULT_MAX_IPS
    window_hours: int = Field(default=MigrationConstants.DEFAULT_WINDOW_HOURS, gt=0)


class ConcurrentStreamsParams(_LegacyParams):
    max_streams: int = MigrationConstants.DEFAULT_MAX_STREAMS


class GeoRestrictionParams(_LegacyParams):
    mode: str = "blocklist"
    countries: List[str] = Field(default_factory=list)


class AccountInactivityParams(_LegacyParams):
    inactivity_value: int = MigrationConstants.DEFAULT_INACTIVITY_VALUE
    inactivity_unit: Literal["days", "weeks", "months"] = "days"


# ============================================================================
# Batch results
# ============================================================================

class MigrationError(BaseModel):
    """A rule that could not be migrated."""
    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_name: Optional[str] = None
    reason: str


class MigrationBatch(BaseModel):
    """Partition of a batch into migrated rules and errors."""
    migrated: List[Rule] = Field(default_factory=list)
    errors: List[MigrationError] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.migrated) + len(self.errors)


# ============================================================================
# Detection
# ============================================================================

def _read(rule: Any, key: str) -> Any:
    if isinstance(rule, Mapping):
        return rule.get(key)
    return getattr(rule, key, None)


def _rule_name(rule: Any) -> Optional[str]:
    name = _read(rule, "name")
    return None if name is None else str(name)


def needs_migration(rule: Any) -> bool:
    """Whether a stored rule still uses the legacy type/params shape.

    Accepts a mapping or any object with ``type``, ``params``,
    ``conditions`` and ``actions`` attributes.
    """
    has_legacy_fields = _read(rule, "type") is not None and _read(rule, "params") is not None
    missing_v2_fields = _read(rule, "conditions") is None or _read(rule, "actions") is None
    return has_legacy_fields and missing_v2_fields


# ============================================================================
# Conversion
# ============================================================================

def _threshold(field: ConditionField, value: Any, params: Optional[ConditionParams] = None) -> Condition:
    return Condition(field=field, operator=Operator.GT, value=value, params=params)


def _convert_impossible_travel(params: Dict[str, Any]) -> List[Condition]:
    parsed = ImpossibleTravelParams.model_validate(params)
    return _with_private_ip_filter(
        [_threshold(ConditionField.TRAVEL_SPEED_KMH, parsed.max_speed_kmh)], parsed
    )


def _convert_simultaneous_locations(params: Dict[str, Any]) -> List[Condition]:
    parsed = SimultaneousLocationsParams.model_validate(params)
    return _with_private_ip_filter(
        [_threshold(ConditionField.ACTIVE_SESSION_DISTANCE_KM, parsed.min_distance_km)], parsed
    )


def _convert_device_velocity(params: Dict[str, Any]) -> List[Condition]:
    parsed = DeviceVelocityParams.model_validate(params)
    condition = _threshold(
        ConditionField.UNIQUE_IPS_IN_WINDOW,
        parsed.max_ips,
        ConditionParams(window_hours=parsed.window_hours),
    )
    return _with_private_ip_filter([condition], parsed)


def _convert_concurrent_streams(params: Dict[str, Any]) -> List[Condition]:
    parsed = ConcurrentStreamsParams.model_validate(params)
    return _with_private_ip_filter(
        [_threshold(ConditionField.CONCURRENT_STREAMS, parsed.max_streams)], parsed
    )


def _convert_geo_restriction(params: Dict[str, Any]) -> List[Condition]:
    parsed = GeoRestrictionParams.model_validate(params)
    operator = Operator.IN if parsed.mode == "blocklist" else Operator.NOT_IN
    condition = Condition(field=ConditionField.COUNTRY, operator=operator, value=list(parsed.countries))
    return _with_private_ip_filter([condition], parsed)


def _convert_account_inactivity(params: Dict[str, Any]) -> List[Condition]:
    parsed = AccountInactivityParams.model_validate(params)
    days = parsed.inactivity_value
    if parsed.inactivity_unit == "weeks":
        days *= MigrationConstants.DAYS_PER_WEEK
    elif parsed.inactivity_unit == "months":
        days *= MigrationConstants.DAYS_PER_MONTH
    return [_threshold(ConditionField.INACTIVE_DAYS, days)]


def _with_private_ip_filter(conditions: List[Condition], params: _LegacyParams) -> List[Condition]:
    # Same group as the threshold, so the group ORs them
    if params.exclude_private_ips:
        conditions.append(Condition(
            field=ConditionField.IS_LOCAL_NETWORK,
            operator=Operator.EQ,
            value=False,
        ))
    return conditions


_CONVERTERS: Dict[str, Callable[[Dict[str, Any]], List[Condition]]] = {
    "impossible_travel": _convert_impossible_travel,
    "simultaneous_locations": _convert_simultaneous_locations,
    "device_velocity": _convert_device_velocity,
    "concurrent_streams": _convert_concurrent_streams,
    "geo_restriction": _convert_geo_restriction,
    "account_inactivity": _convert_account_inactivity,
}


LEGACY_RULE_TYPES = frozenset(_CONVERTERS)


def _default_actions() -> RuleActions:
    return RuleActions(actions=[
        CreateViolationAction(severity=ViolationSeverity(MigrationConstants.DEFAULT_SEVERITY)),
    ])


def _convert(legacy: Any) -> Rule:
    """Convert one legacy rule.

    Raises:
        LegacyRuleConversionError: Unknown type or unusable params
    """
    if not isinstance(legacy, LegacyRule):
        try:
            legacy = LegacyRule.model_validate(
                legacy, from_attributes=not isinstance(legacy, Mapping)
            )
        except PydanticValidationError as e:
            rule_id = str(_read(legacy, "id"))
            logger.error(f"Invalid legacy rule {rule_id}: {e}")
            raise LegacyRuleConversionError(f"Invalid legacy rule: {e}", rule_id=rule_id) from e

    converter = _CONVERTERS.get(legacy.type or "")
    if converter is None:
        logger.warning(f"Unknown rule type: {legacy.type} (rule {legacy.id})")
        raise LegacyRuleConversionError(
            f"Unknown rule type: {legacy.type}",
            rule_id=legacy.id,
            details={"type": legacy.type},
        )

    try:
        conditions = converter(legacy.params or {})
        return Rule(
            id=legacy.id,
            name=legacy.name,
            server_id=legacy.server_id,
            is_active=legacy.is_active,
            conditions=RuleConditions(groups=[ConditionGroup(conditions=conditions)]),
            actions=_default_actions(),
        )
    except PydanticValidationError as e:
        logger.error(f"Error converting rule {legacy.id}: {e}")
        raise LegacyRuleConversionError(
            f"Invalid params for {legacy.type} rule: {e}",
            rule_id=legacy.id,
            details={"type": legacy.type},
        ) from e


def convert_legacy_rule(legacy: Any) -> Optional[Rule]:
    """Convert a legacy rule to a conditions/actions rule.

    Args:
        legacy: LegacyRule or a stored mapping

    Returns:
        Migrated Rule, or None when the rule cannot be converted.
        Never raises.
    """
    try:
        return _convert(legacy)
    except LegacyRuleConversionError:
        return None
    except Exception as e:
        logger.error(f"Unexpected error converting rule {_read(legacy, 'id')}: {e}")
        return None


def migrate_rules(rules: List[Any]) -> MigrationBatch:
    """Migrate a batch, partitioning outcomes in input order. Never raises."""
    batch = MigrationBatch()
    for legacy in rules:
        try:
            batch.migrated.append(_convert(legacy))
        except LegacyRuleConversionError as e:
            batch.errors.append(MigrationError(
                rule_id=e.details["rule_id"],
                rule_name=_rule_name(legacy),
                reason=e.message,
            ))
        except Exception as e:
            logger.error(f"Unexpected error migrating rule: {type(e).__name__}: {e}")
            batch.errors.append(MigrationError(
                rule_id=str(_read(legacy, "id")),
                rule_name=_rule_name(legacy),
                reason=str(e),
            ))

    logger.info(
        f"Migrated {len(batch.migrated)} of {len(rules)} legacy rules "
        f"({len(batch.errors)} errors)"
    )
    return batch
