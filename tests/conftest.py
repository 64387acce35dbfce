"""Shared fixtures for the stageflow tests."""

import asyncio
from typing import Any, Callable, List, Optional

import pytest

from stageflow.agents import FunctionAgent
from stageflow.core import (
    AbortController,
    AgentContext,
    ApprovalRequest,
    FeedbackContext,
    HumanResponse,
    InvocationContext,
)
from stageflow.hitl import InterventionHandler
from stageflow.state import SessionState


class ScriptedHandler(InterventionHandler):
    """Intervention handler replaying canned responses."""

    def __init__(self, responses: Optional[List[HumanResponse]] = None, delay: float = 0.0):
        self.responses = list(responses or [])
        self.delay = delay
        self.requests: List[ApprovalRequest] = []
        self.notifications = []

    async def handle_approval(self, approval_id: str, request: ApprovalRequest) -> HumanResponse:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.responses:
            return self.responses.pop(0)
        return HumanResponse(approved=True)

    async def collect_feedback(self, prompt: str, context: FeedbackContext) -> str:
        return f"feedback for {context.agent_id}"

    async def notify(self, notification) -> None:
        self.notifications.append(notification)


@pytest.fixture
def calls() -> List[str]:
    """Ids of agents in invocation order."""
    return []


@pytest.fixture
def make_agent(calls):
    """Build FunctionAgents that record their invocation.

    ``output`` may be a value or a callable ``(context) -> value``.
    """

    def _make(
        agent_id: str,
        output: Any = None,
        output_key: Optional[str] = None,
        requires_approval: bool = False,
        before: Optional[Callable[[AgentContext], None]] = None,
    ) -> FunctionAgent:
        async def run(context: AgentContext, instruction: str) -> Any:
            calls.append(agent_id)
            if before is not None:
                before(context)
            if callable(output):
                return output(context)
            return output if output is not None else f"{agent_id}-output"

        return FunctionAgent(
            agent_id,
            run,
            output_key=output_key,
            requires_approval=requires_approval,
        )

    return _make


@pytest.fixture
def make_context():
    """Build a workflow context on a fresh session."""

    def _make(input: Any = None, hitl=None, controller: Optional[AbortController] = None) -> AgentContext:
        controller = controller or AbortController()
        return AgentContext(
            state=SessionState("test-session"),
            invocation=InvocationContext(input=input),
            signal=controller.signal,
            hitl=hitl,
        )

    return _make


@pytest.fixture
def make_handler():
    """Build scripted intervention handlers."""
    return ScriptedHandler
