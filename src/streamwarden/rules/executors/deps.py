"""Executor Dependency Provider - the external effects actions rely on.

Every side effect of an action goes through an ActionExecutorDeps
implementation injected into the orchestrator. The no-op provider lets
the engine run without any infrastructure wired.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from streamwarden.rules.schemas import Action, NotificationChannel, ViolationSeverity


class ViolationPayload(BaseModel):
    """Violation to persist."""
    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_name: str
    session_id: str
    server_user_id: str
    server_id: str
    severity: ViolationSeverity
    details: Dict[str, Any] = Field(default_factory=dict)


class AuditPayload(BaseModel):
    """Audit entry for a log-only action."""
    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_name: str
    session_id: str
    server_user_id: str
    server_id: str
    message: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class NotificationPayload(BaseModel):
    """One notification addressed to every listed channel."""
    model_config = ConfigDict(frozen=True)

    channels: List[NotificationChannel]
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)


class ConfirmationPayload(BaseModel):
    """Action deferred until an operator approves it."""
    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_name: str
    session_id: str
    server_user_id: str
    server_id: str
    action: Action


class ActionExecutorDeps(ABC):
    """Collaborator contract consumed by the action executors.

    All operations are async and may raise; the orchestrator turns any
    exception into a failed ActionResult.
    """

    @abstractmethod
    async def create_violation(self, payload: ViolationPayload) -> None: ...

    @abstractmethod
    async def log_audit(self, payload: AuditPayload) -> None: ...

    @abstractmethod
    async def send_notification(self, payload: NotificationPayload) -> None: ...

    @abstractmethod
    async def adjust_user_trust(self, server_user_id: str, amount: int) -> None: ...

    @abstractmethod
    async def set_user_trust(self, server_user_id: str, value: int) -> None: ...

    @abstractmethod
    async def reset_user_trust(self, server_user_id: str) -> None: ...

    @abstractmethod
    async def terminate_session(
        self,
        session_id: str,
        server_id: str,
        delay_seconds: int,
        message: Optional[str] = None,
    ) -> None: ...

    @abstractmethod
    async def send_client_message(self, session_id: str, message: str) -> None: ...

    @abstractmethod
    async def check_cooldown(self, key: str) -> bool: ...

    @abstractmethod
    async def set_cooldown(self, key: str, minutes: int) -> None: ...

    @abstractmethod
    async def queue_for_confirmation(self, payload: ConfirmationPayload) -> None: ...


class NoopActionExecutorDeps(ActionExecutorDeps):
    """Provider that performs no side effects. Cooldowns are never active."""

    async def create_violation(self, payload: ViolationPayload) -> None:
        return None

    async def log_audit(self, payload: AuditPayload) -> None:
        return None

    async def send_notification(self, payload: NotificationPayload) -> None:
        return None

    async def adjust_user_trust(self, server_user_id: str, amount: int) -> None:
        return None

    async def set_user_trust(self, server_user_id: str, value: int) -> None:
        return None

    async def reset_user_trust(self, server_user_id: str) -> None:
        return None

    async def terminate_session(
        self,
        session_id: str,
        server_id: str,
        delay_seconds: int,
        message: Optional[str] = None,
    ) -> None:
        return None

    async def send_client_message(self, session_id: str, message: str) -> None:
        return None

    async def check_cooldown(self, key: str) -> bool:
        return False

    async def set_cooldown(self, key: str, minutes: int) -> None:
        return None

    async def queue_for_confirmation(self, payload: ConfirmationPayload) -> None:
        return None


def create_noop_deps() -> ActionExecutorDeps:
    """Fresh no-op provider (default wiring and test reset)."""
    return NoopActionExecutorDeps()
