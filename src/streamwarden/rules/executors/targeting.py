"""Session targeting - which of a user's sessions an action applies to."""

from typing import List, Optional, Union

from streamwarden.data.schemas import Session
from streamwarden.rules.context import EvaluationContext
from streamwarden.rules.schemas import SessionTarget


def _user_sessions(context: EvaluationContext) -> List[Session]:
    """Active sessions of the context's user, oldest first (ties by id)."""
    user_id = context.server_user.id
    return sorted(
        (s for s in context.active_sessions if s.server_user_id == user_id),
        key=lambda s: (s.started_at, s.id),
    )


def resolve_target_sessions(
    context: EvaluationContext,
    target: Optional[Union[SessionTarget, str]] = None,
) -> List[Session]:
    """Resolve the sessions an action should apply to.

    Args:
        context: Evaluation context (never mutated)
        target: Target mode; None means the triggering session

    Returns:
        New list of sessions, possibly empty
    """
    if target is None:
        return [context.session]

    target = SessionTarget(target)

    if target == SessionTarget.TRIGGERING:
        return [context.session]

    sessions = _user_sessions(context)

    if target == SessionTarget.OLDEST:
        return sessions[:1]
    if target == SessionTarget.NEWEST:
        return sessions[-1:]
    if target == SessionTarget.ALL_EXCEPT_ONE:
        return sessions[1:]
    # SessionTarget.ALL_USER
    return sessions
