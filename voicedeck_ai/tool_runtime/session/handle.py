"""Explicit handle for the active remote session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from ..errors import SessionProtocolError
from ..schemas.domain import SessionState

_FORWARD: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.uninitialized: frozenset({SessionState.created}),
    SessionState.created: frozenset({SessionState.tools_registered}),
    SessionState.tools_registered: frozenset({SessionState.initiated}),
    SessionState.initiated: frozenset({SessionState.prompt_configured}),
    SessionState.prompt_configured: frozenset({SessionState.audio_ready}),
    SessionState.audio_ready: frozenset({SessionState.streaming}),
    SessionState.streaming: frozenset(),
    SessionState.closing: frozenset({SessionState.closed}),
    SessionState.closed: frozenset(),
    SessionState.error: frozenset({SessionState.closed}),
}


@dataclass
class SessionHandle:
    """Tracks one remote session: id, state, registered tools and the remote stream.

    Transitions are forward-only. ``closing`` is reachable from every open
    state and ``error`` from every state.
    """

    session_id: str
    stream: Any = None
    state: SessionState = SessionState.uninitialized
    registered_tools: List[str] = field(default_factory=list)
    prompt_started: bool = False
    last_error: Optional[str] = None

    def can_advance(self, target: SessionState) -> bool:
        if target is SessionState.error:
            return True
        if target is SessionState.closing:
            return self.state not in (SessionState.closing, SessionState.closed)
        return target in _FORWARD[self.state]

    def advance(self, target: SessionState) -> None:
        if not self.can_advance(target):
            raise SessionProtocolError(
                f"Invalid session transition {self.state.value} -> {target.value}",
                details={"session_id": self.session_id},
            )
        self.state = target

    def require(self, *states: SessionState) -> None:
        if self.state not in states:
            expected = ", ".join(s.value for s in states)
            raise SessionProtocolError(
                f"Session {self.session_id} is {self.state.value}, expected {expected}",
                details={"session_id": self.session_id},
            )

    def fail(self, message: str) -> None:
        self.last_error = message
        self.state = SessionState.error

    @property
    def is_open(self) -> bool:
        return self.state not in (SessionState.closed,)
