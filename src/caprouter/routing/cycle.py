"""Per-request routing cycle and its state machine.

States:
    IDLE -> CLASSIFYING -> RESOLVED -> DISPATCHING -> COMPLETED
                                                   -> FAILED
                                                   -> CANCELLED

A cycle belongs to exactly one request and is never shared, so it is the
only mutable object in a routing run. Its Decision stays available after a
failure or a cancellation for diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from uuid import uuid4

from caprouter.routing.decision import Decision
from caprouter.routing.models import RequestContext


class CycleState(StrEnum):
    """Lifecycle state of a routing cycle."""

    IDLE = "idle"
    CLASSIFYING = "classifying"
    RESOLVED = "resolved"
    DISPATCHING = "dispatching"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


_TRANSITIONS: dict[CycleState, frozenset[CycleState]] = {
    CycleState.IDLE: frozenset({CycleState.CLASSIFYING}),
    CycleState.CLASSIFYING: frozenset({CycleState.RESOLVED}),
    CycleState.RESOLVED: frozenset({CycleState.DISPATCHING, CycleState.CANCELLED}),
    CycleState.DISPATCHING: frozenset(
        {CycleState.COMPLETED, CycleState.FAILED, CycleState.CANCELLED}
    ),
    CycleState.COMPLETED: frozenset(),
    CycleState.FAILED: frozenset(),
    CycleState.CANCELLED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    """One backend invocation made while dispatching.

    Attributes:
        target: Target invoked.
        backend: Backend serving the target.
        attempt: 1-based attempt number on that target.
        degraded: True for the single attempt on a lower tier.
        succeeded: Whether the invocation succeeded.
        reason: Failure cause ("timeout", "exception", "failed_result").
        error: Failure message.
        latency_ms: Wall time of the invocation.
    """

    target: str
    backend: str
    attempt: int
    degraded: bool
    succeeded: bool
    reason: str | None = None
    error: str | None = None
    latency_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "backend": self.backend,
            "attempt": self.attempt,
            "degraded": self.degraded,
            "succeeded": self.succeeded,
            "reason": self.reason,
            "error": self.error,
            "latency_ms": self.latency_ms,
        }


def new_request_id() -> str:
    return f"req_{uuid4().hex[:12]}"


@dataclass
class RoutingCycle:
    """State of one request's trip through the router.

    Attributes:
        context: The request.
        request_id: Identifier bound to log lines and the Decision.
        state: Current state.
        decision: Set when the cycle reaches RESOLVED.
        attempts: Backend invocations made while dispatching.
        history: Every state visited, in order.
    """

    context: RequestContext
    request_id: str = field(default_factory=new_request_id)
    state: CycleState = CycleState.IDLE
    decision: Decision | None = None
    attempts: list[AttemptRecord] = field(default_factory=list)
    history: list[CycleState] = field(default_factory=lambda: [CycleState.IDLE])

    def transition(self, new_state: CycleState) -> None:
        """Move to ``new_state``.

        Raises:
            RuntimeError: If the transition is not allowed.
        """
        if new_state not in _TRANSITIONS[self.state]:
            msg = f"Illegal cycle transition {self.state.value} -> {new_state.value}"
            raise RuntimeError(msg)
        self.state = new_state
        self.history.append(new_state)

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.state]
