"""Tests for rule schemas and action results."""

import pytest
from pydantic import ValidationError

from streamwarden.rules.context import EvaluationContext
from streamwarden.rules.schemas import (
    ACTION_MODELS,
    ActionResult,
    ActionType,
    AdjustTrustAction,
    Condition,
    ConditionField,
    ConditionGroup,
    FieldCategory,
    KillStreamAction,
    MessageClientAction,
    NotifyAction,
    Operator,
    Rule,
    RuleActions,
    RuleConditions,
    SetTrustAction,
    get_cooldown_minutes,
    parse_action,
    requires_confirmation,
    summarize_results,
)
from tests.fixtures.playback import make_rule, make_server, make_session, make_user


class TestConditions:
    """Tests for condition structure."""

    def test_rule_requires_a_group(self):
        """Test that empty group lists are rejected."""
        with pytest.raises(ValidationError):
            RuleConditions(groups=[])

    def test_group_requires_a_condition(self):
        """Test that empty groups are rejected."""
        with pytest.raises(ValidationError):
            ConditionGroup(conditions=[])

    def test_windowed_field_defaults_to_24_hours(self):
        """Test the default window for windowed fields."""
        condition = Condition(field=ConditionField.UNIQUE_DEVICES_IN_WINDOW, operator=Operator.GT, value=3)
        assert condition.effective_window_hours == 24

    def test_non_windowed_field_has_no_window(self):
        """Test that plain fields ignore windows."""
        condition = Condition(field=ConditionField.TRUST_SCORE, operator=Operator.LT, value=50)
        assert condition.effective_window_hours is None

    def test_every_field_has_a_category(self):
        """Test that the field catalogue is closed over categories."""
        for field in ConditionField:
            assert isinstance(field.category, FieldCategory)
        assert ConditionField.COUNTRY.category == FieldCategory.NETWORK_LOCATION


class TestActions:
    """Tests for action variants and their bounds."""

    def test_rule_requires_an_action(self):
        """Test that empty action lists are rejected."""
        with pytest.raises(ValidationError):
            RuleActions(actions=[])

    @pytest.mark.parametrize("amount", [-101, 101])
    def test_adjust_trust_bounds(self, amount):
        """Test that adjustments stay within +/-100."""
        with pytest.raises(ValidationError):
            AdjustTrustAction(amount=amount)

    @pytest.mark.parametrize("value", [-1, 101])
    def test_set_trust_bounds(self, value):
        """Test that absolute trust stays within 0..100."""
        with pytest.raises(ValidationError):
            SetTrustAction(value=value)

    def test_kill_delay_bounds(self):
        """Test the 0..300 second delay range."""
        assert KillStreamAction(delay_seconds=300).delay_seconds == 300
        with pytest.raises(ValidationError):
            KillStreamAction(delay_seconds=301)

    def test_actions_are_immutable(self):
        """Test that actions cannot be changed once built."""
        action = NotifyAction(channels=[])
        with pytest.raises(ValidationError):
            action.cooldown_minutes = 5

    def test_parse_action_dispatches_on_type(self):
        """Test discriminated parsing of stored actions."""
        action = parse_action({"type": "kill_stream", "target": "oldest", "require_confirmation": True})
        assert isinstance(action, KillStreamAction)
        assert requires_confirmation(action)

    def test_parse_action_rejects_unknown_type(self):
        """Test that unknown tags fail validation."""
        with pytest.raises(ValidationError):
            parse_action({"type": "ban_user"})

    def test_action_models_cover_action_types(self):
        """Test that every action type has a model."""
        assert set(ACTION_MODELS) == {t.value for t in ActionType}

    def test_policy_helpers(self):
        """Test cooldown and confirmation lookups across variants."""
        assert get_cooldown_minutes(NotifyAction(cooldown_minutes=5)) == 5
        assert get_cooldown_minutes(MessageClientAction(message="hi")) is None
        assert not requires_confirmation(KillStreamAction())
        assert not requires_confirmation(MessageClientAction(message="hi"))


class TestRule:
    """Tests for the rule model."""

    def test_rule_from_stored_camel_case(self):
        """Test that stored camelCase rows validate."""
        rule = Rule.model_validate({
            "id": "r1",
            "name": "Geo block",
            "serverId": None,
            "isActive": True,
            "conditions": {"groups": [{"conditions": [
                {"field": "country", "operator": "in", "value": ["RU"]},
            ]}]},
            "actions": {"actions": [{"type": "create_violation", "severity": "high"}]},
        })
        assert rule.server_id is None
        assert rule.actions.actions[0].severity.value == "high"


class TestActionResult:
    """Tests for action results and records."""

    def test_executed(self):
        result = ActionResult.executed("notify")
        assert result.success and not result.skipped
        assert result.message == "Executed notify"

    def test_record_for_failure(self):
        """Test that failed records carry the error message."""
        record = ActionResult.failed("kill_stream", "timeout").to_record("r1", violation_id="v1")
        assert record == {
            "violationId": "v1",
            "ruleId": "r1",
            "actionType": "kill_stream",
            "success": False,
            "skipped": False,
            "skipReason": None,
            "errorMessage": "timeout",
        }

    def test_record_for_deferral(self):
        """Test that successful records omit the error message."""
        record = ActionResult.deferred("notify", "On cooldown (5 minutes)").to_record("r1")
        assert record["skipped"] is True
        assert record["skipReason"] == "On cooldown (5 minutes)"
        assert record["errorMessage"] is None
        assert record["violationId"] is None

    def test_summary_distinguishes_skips(self):
        """Test that deferrals are not counted as enforcement."""
        summary = summarize_results([
            ActionResult.executed("create_violation"),
            ActionResult.deferred("kill_stream", "Queued for manual confirmation"),
            ActionResult.failed("notify", "smtp down"),
        ])
        assert (summary.total, summary.executed, summary.skipped, summary.failed) == (3, 1, 1, 1)
        assert not summary.all_succeeded


class TestEvaluationContext:
    """Tests for the evaluation context."""

    def test_session_lists_become_tuples(self):
        """Test that caller lists are frozen into snapshots."""
        session = make_session()
        sessions = [session]
        context = EvaluationContext(
            session=session,
            server=make_server(),
            server_user=make_user(),
            rule=make_rule(),
            active_sessions=sessions,
        )
        sessions.append(make_session("s2"))

        assert context.active_sessions == (session,)
        assert context.recent_sessions == ()
