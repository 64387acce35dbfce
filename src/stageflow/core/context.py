"""Execution context passed to agents and workflows.

A context bundles the shared session state, the invocation record for the
current step, the cooperative abort signal, a logger and the
human-in-the-loop interface.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable
from uuid import uuid4

from .models import (
    ApprovalRequest,
    FeedbackContext,
    HumanResponse,
    Notification,
    TokenUsage,
)

if TYPE_CHECKING:
    from ..state.session import SessionState


@runtime_checkable
class Logger(Protocol):
    """Leveled logger; ``logging.Logger`` satisfies it."""

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


@runtime_checkable
class HITLInterface(Protocol):
    """Boundary to the human reviewer (UI, CLI or API)."""

    async def request_approval(self, request: ApprovalRequest) -> HumanResponse: ...

    async def collect_feedback(self, prompt: str, context: FeedbackContext) -> str: ...

    async def notify(self, notification: Notification) -> None: ...


class AbortSignal:
    """Read side of a cooperative cancellation flag."""

    def __init__(self) -> None:
        self._aborted = False
        self._reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Optional[str]:
        return self._reason


class AbortController:
    """Owner of an AbortSignal; strategies check the signal between steps."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Optional[str] = None) -> None:
        if self.signal._aborted:
            return
        self.signal._aborted = True
        self.signal._reason = reason


@dataclass
class WorkflowActions:
    """Control flags an agent may raise on its invocation."""

    escalate: bool = False
    transfer_to: Optional[str] = None
    request_intervention: bool = False
    intervention_reason: Optional[str] = None


@dataclass
class InvocationContext:
    """Record of a single agent invocation."""

    invocation_id: str = field(default_factory=lambda: str(uuid4()))
    input: Any = None
    parent_agent_id: Optional[str] = None
    branch: Optional[str] = None
    timeout: Optional[float] = None
    iteration: Optional[int] = None
    actions: WorkflowActions = field(default_factory=WorkflowActions)
    tool_calls: int = 0
    tokens_used: Optional[TokenUsage] = None


@dataclass
class AgentContext:
    """Everything an agent needs to run one step."""

    state: "SessionState"
    invocation: InvocationContext
    signal: AbortSignal
    logger: Logger = field(default_factory=lambda: logging.getLogger("stageflow.run"))
    hitl: Optional[HITLInterface] = None

    def derive(self, **invocation_changes: Any) -> "AgentContext":
        """Return a child context with fresh actions and counters.

        The session state, signal, logger and HITL interface are shared.
        """
        invocation = replace(
            self.invocation,
            actions=WorkflowActions(),
            tool_calls=0,
            tokens_used=None,
            **invocation_changes,
        )
        return AgentContext(
            state=self.state,
            invocation=invocation,
            signal=self.signal,
            logger=self.logger,
            hitl=self.hitl,
        )


# Workflows run against the same context shape as agents.
WorkflowContext = AgentContext


@dataclass
class ExecutionOptions:
    """Per-run options for the workflow engine."""

    session_id: Optional[str] = None
    timeout: Optional[float] = None
    abort_controller: Optional[AbortController] = None
    research_topic: Optional[str] = None
