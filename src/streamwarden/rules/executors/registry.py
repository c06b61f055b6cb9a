"""Action Executor Registry - one executor per action variant.

Executors receive the evaluation context, their typed action and the
dependency provider. They let collaborator exceptions propagate; the
orchestrator converts them into failed results.
"""

import logging
from typing import Awaitable, Callable, Dict, Type

from streamwarden.rules.context import EvaluationContext
from streamwarden.rules.executors.deps import (
    ActionExecutorDeps,
    AuditPayload,
    NotificationPayload,
    ViolationPayload,
)
from streamwarden.rules.executors.targeting import resolve_target_sessions
from streamwarden.rules.schemas import (
    ActionResult,
    AdjustTrustAction,
    BaseAction,
    CreateViolationAction,
    KillStreamAction,
    LogOnlyAction,
    MessageClientAction,
    NotifyAction,
    ResetTrustAction,
    SetTrustAction,
)


logger = logging.getLogger(__name__)


ActionExecutor = Callable[[EvaluationContext, BaseAction, ActionExecutorDeps], Awaitable[ActionResult]]


def _session_details(context: EvaluationContext) -> Dict[str, object]:
    session = context.session
    return {
        "sessionKey": session.session_key,
        "mediaTitle": session.media_title,
        "ipAddress": session.ip_address,
    }


async def execute_create_violation(
    context: EvaluationContext,
    action: CreateViolationAction,
    deps: ActionExecutorDeps,
) -> ActionResult:
    await deps.create_violation(ViolationPayload(
        rule_id=context.rule.id,
        rule_name=context.rule.name,
        session_id=context.session.id,
        server_user_id=context.server_user.id,
        server_id=context.server.id,
        severity=action.severity,
        details=_session_details(context),
    ))
    return ActionResult.executed(action.type)


async def execute_log_only(
    context: EvaluationContext,
    action: LogOnlyAction,
    deps: ActionExecutorDeps,
) -> ActionResult:
    await deps.log_audit(AuditPayload(
        rule_id=context.rule.id,
        rule_name=context.rule.name,
        session_id=context.session.id,
        server_user_id=context.server_user.id,
        server_id=context.server.id,
        message=action.message,
        details=_session_details(context),
    ))
    return ActionResult.executed(action.type)


async def execute_notify(
    context: EvaluationContext,
    action: NotifyAction,
    deps: ActionExecutorDeps,
) -> ActionResult:
    if not action.channels:
        return ActionResult.executed(action.type)

    rule = context.rule
    username = context.server_user.username
    media_title = context.session.media_title
    await deps.send_notification(NotificationPayload(
        channels=list(action.channels),
        title=f"Rule Triggered: {rule.name}",
        message=f'User "{username}" triggered rule "{rule.name}" while playing "{media_title}"',
        data={
            "ruleId": rule.id,
            "ruleName": rule.name,
            "sessionId": context.session.id,
            "serverUserId": context.server_user.id,
            "serverId": context.server.id,
            "username": username,
            "mediaTitle": media_title,
        },
    ))
    return ActionResult.executed(action.type)


async def execute_adjust_trust(
    context: EvaluationContext,
    action: AdjustTrustAction,
    deps: ActionExecutorDeps,
) -> ActionResult:
    if action.amount == 0:
        return ActionResult.executed(action.type)
    await deps.adjust_user_trust(context.server_user.id, action.amount)
    return ActionResult.executed(action.type)


async def execute_set_trust(
    context: EvaluationContext,
    action: SetTrustAction,
    deps: ActionExecutorDeps,
) -> ActionResult:
    await deps.set_user_trust(context.server_user.id, action.value)
    return ActionResult.executed(action.type)


async def execute_reset_trust(
    context: EvaluationContext,
    action: ResetTrustAction,
    deps: ActionExecutorDeps,
) -> ActionResult:
    await deps.reset_user_trust(context.server_user.id)
    return ActionResult.executed(action.type)


async def execute_kill_stream(
    context: EvaluationContext,
    action: KillStreamAction,
    deps: ActionExecutorDeps,
) -> ActionResult:
    """Terminate every targeted session; the action is reported once."""
    targets = resolve_target_sessions(context, action.target)
    if not targets:
        logger.debug(f"kill_stream for rule {context.rule.id} resolved no sessions")

    for session in targets:
        await deps.terminate_session(
            session.id,
            context.server.id,
            action.delay_seconds or 0,
            action.message,
        )
    return ActionResult.executed(action.type)


async def execute_message_client(
    context: EvaluationContext,
    action: MessageClientAction,
    deps: ActionExecutorDeps,
) -> ActionResult:
    if not action.message:
        return ActionResult.executed(action.type)

    for session in resolve_target_sessions(context, action.target):
        await deps.send_client_message(session.id, action.message)
    return ActionResult.executed(action.type)


# Closed dispatch table; every Action variant must have an entry
EXECUTOR_REGISTRY: Dict[Type[BaseAction], ActionExecutor] = {
    CreateViolationAction: execute_create_violation,
    LogOnlyAction: execute_log_only,
    NotifyAction: execute_notify,
    AdjustTrustAction: execute_adjust_trust,
    SetTrustAction: execute_set_trust,
    ResetTrustAction: execute_reset_trust,
    KillStreamAction: execute_kill_stream,
    MessageClientAction: execute_message_client,
}


def get_executor(action: BaseAction) -> ActionExecutor:
    """Executor registered for the action's variant.

    Raises:
        KeyError: If the variant has no registered executor
    """
    return EXECUTOR_REGISTRY[type(action)]
