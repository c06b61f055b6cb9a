"""Action execution - dependency provider, targeting, executors, orchestrator."""

from streamwarden.rules.executors.deps import (
    ActionExecutorDeps,
    AuditPayload,
    ConfirmationPayload,
    NoopActionExecutorDeps,
    NotificationPayload,
    ViolationPayload,
    create_noop_deps,
)
from streamwarden.rules.executors.orchestrator import ActionOrchestrator, build_cooldown_key
from streamwarden.rules.executors.registry import EXECUTOR_REGISTRY, get_executor
from streamwarden.rules.executors.targeting import resolve_target_sessions

__all__ = [
    "ActionExecutorDeps",
    "ActionOrchestrator",
    "AuditPayload",
    "ConfirmationPayload",
    "EXECUTOR_REGISTRY",
    "NoopActionExecutorDeps",
    "NotificationPayload",
    "ViolationPayload",
    "build_cooldown_key",
    "create_noop_deps",
    "get_executor",
    "resolve_target_sessions",
]
