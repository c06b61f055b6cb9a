"""Action Orchestrator - runs a matched rule's actions against one context.

Lifecycle of a single action:
1. Resolve the executor for the action's variant
2. Defer to the confirmation queue when approval is required
3. Skip while a cooldown window is active
4. Execute, then start a new cooldown window

Error Handling:
- Nothing raised by an executor or collaborator escapes; every action
  yields exactly one ActionResult
- Failures never stop the remaining actions of the list
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from streamwarden.common.constants import ActionConstants
from streamwarden.rules.context import EvaluationContext
from streamwarden.rules.executors.deps import (
    ActionExecutorDeps,
    ConfirmationPayload,
    create_noop_deps,
)
from streamwarden.rules.executors.registry import EXECUTOR_REGISTRY
from streamwarden.rules.schemas import (
    ACTION_MODELS,
    ActionResult,
    BaseAction,
    get_cooldown_minutes,
    parse_action,
    requires_confirmation,
)


logger = logging.getLogger(__name__)


ActionInput = Union[BaseAction, Mapping[str, Any]]

CONFIRMATION_SKIP_REASON = "Queued for manual confirmation"


def build_cooldown_key(context: EvaluationContext, action_type: str) -> str:
    """Cooldown key scoped to rule, action type and server user."""
    return (
        f"{ActionConstants.COOLDOWN_KEY_PREFIX}:{context.rule.id}:"
        f"{action_type}:{context.server_user.id}"
    )


def _action_type_of(action: ActionInput) -> str:
    if isinstance(action, Mapping):
        return str(action.get("type"))
    return str(getattr(action, "type", type(action).__name__))


class ActionOrchestrator:
    """Applies confirmation and cooldown policy around the executors.

    The dependency provider is fixed at construction; independent
    orchestrators (or concurrent calls on one) share no engine state.
    """

    def __init__(
        self,
        deps: Optional[ActionExecutorDeps] = None,
        metrics: Optional[Any] = None,
    ):
        """Initialize orchestrator.

        Args:
            deps: Dependency provider. Uses the no-op provider if not provided.
            metrics: Optional RuleMetricsCollector notified of every result.
        """
        self.deps = deps or create_noop_deps()
        self.metrics = metrics

    async def execute_action(
        self,
        context: EvaluationContext,
        action: ActionInput,
    ) -> ActionResult:
        """Execute one action. Never raises.

        Args:
            context: Evaluation context of the matched rule
            action: Typed action, or a stored mapping with a ``type`` key

        Returns:
            ActionResult describing the outcome
        """
        result = await self._execute(context, action)
        self._record(context, result)
        return result

    async def execute_actions(
        self,
        context: EvaluationContext,
        actions: Sequence[ActionInput],
    ) -> List[ActionResult]:
        """Execute actions sequentially, in order, one result per action."""
        results: List[ActionResult] = []
        for action in actions:
            results.append(await self.execute_action(context, action))
        return results

    async def _execute(self, context: EvaluationContext, action: ActionInput) -> ActionResult:
        action_type = _action_type_of(action)

        if isinstance(action, Mapping):
            if action_type not in ACTION_MODELS:
                return ActionResult.failed(action_type, f"Unknown action type: {action_type}")
            try:
                action = parse_action(dict(action))
            except ValidationError as e:
                logger.warning(f"Invalid {action_type} action on rule {context.rule.id}: {e}")
                return ActionResult.failed(action_type, f"Invalid {action_type} action: {e}")

        executor = EXECUTOR_REGISTRY.get(type(action))
        if executor is None:
            return ActionResult.failed(action_type, f"Unknown action type: {action_type}")

        try:
            if requires_confirmation(action):
                await self.deps.queue_for_confirmation(ConfirmationPayload(
                    rule_id=context.rule.id,
                    rule_name=context.rule.name,
                    session_id=context.session.id,
                    server_user_id=context.server_user.id,
                    server_id=context.server.id,
                    action=action,
                ))
                logger.info(
                    f"Action {action_type} of rule {context.rule.id} queued for confirmation"
                )
                return ActionResult.deferred(action_type, CONFIRMATION_SKIP_REASON)

            cooldown_minutes = get_cooldown_minutes(action)
            cooldown_key = None
            if cooldown_minutes:
                cooldown_key = build_cooldown_key(context, action_type)
                if await self.deps.check_cooldown(cooldown_key):
                    logger.info(f"Action {action_type} of rule {context.rule.id} on cooldown")
                    return ActionResult.deferred(
                        action_type, f"On cooldown ({cooldown_minutes} minutes)"
                    )

            logger.debug(f"Executing {action_type} for rule {context.rule.id}")
            result = await executor(context, action, self.deps)

            if cooldown_key is not None and result.success:
                await self.deps.set_cooldown(cooldown_key, cooldown_minutes)

            return result
        except Exception as e:
            logger.warning(
                f"Action {action_type} of rule {context.rule.id} failed: "
                f"{type(e).__name__}: {e}"
            )
            return ActionResult.failed(action_type, str(e))

    def _record(self, context: EvaluationContext, result: ActionResult) -> None:
        if self.metrics is None:
            return
        try:
            self.metrics.record_action_result(context.rule.id, result)
        except Exception as e:
            logger.warning(f"Failed to record action metric: {e}")
