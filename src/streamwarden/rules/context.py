"""Evaluation Context - the read-only input of one rule evaluation.

The upstream evaluator assembles the context; the engine only reads it.
Session collections are stored as tuples so targeting always works on an
immutable snapshot.
"""

from dataclasses import dataclass, field
from typing import Sequence, Tuple

from streamwarden.data.schemas import Server, ServerUser, Session
from streamwarden.rules.schemas import Rule


@dataclass(frozen=True)
class EvaluationContext:
    """Session, server, user and rule under evaluation."""
    session: Session
    server: Server
    server_user: ServerUser
    rule: Rule
    active_sessions: Tuple[Session, ...] = field(default_factory=tuple)
    recent_sessions: Tuple[Session, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Freeze caller-supplied lists into snapshots
        object.__setattr__(self, "active_sessions", tuple(self.active_sessions))
        object.__setattr__(self, "recent_sessions", tuple(self.recent_sessions))

    @classmethod
    def create(
        cls,
        session: Session,
        server: Server,
        server_user: ServerUser,
        rule: Rule,
        active_sessions: Sequence[Session] = (),
        recent_sessions: Sequence[Session] = (),
    ) -> "EvaluationContext":
        """Factory accepting any sequence of sessions."""
        return cls(
            session=session,
            server=server,
            server_user=server_user,
            rule=rule,
            active_sessions=tuple(active_sessions),
            recent_sessions=tuple(recent_sessions),
        )
